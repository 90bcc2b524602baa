import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import httpx

from video_ingest.core.config import OpenAIConfig
from video_ingest.core.errors import MetadataGenerationFailed, QuoteExtractionFailed

logger = logging.getLogger(__name__)

QUOTE_MARKERS = ("-", "*", "•")

QUOTES_PROMPT = (
    "Extract 2-3 insightful quotes from the following video transcript for a second brain. "
    "Format each quote on a new line starting with a dash (-). Keep them brief and meaningful.\n"
    'Transcript:\n"{transcript}"'
)
TITLE_PROMPT = (
    "Based on the following transcript, generate an engaging and catchy title "
    "(max 60 characters):\n\n{transcript}"
)
DESCRIPTION_PROMPT = (
    "Based on the following transcript, generate a concise and engaging video description "
    "(max 200 characters):\n\n{transcript}"
)
TAGS_PROMPT = (
    "Read this transcript and produce 20 relevant category tags (comma-separated) "
    "that best capture the main topics or themes:\n\n{transcript}"
)


@dataclass(frozen=True)
class CompletionTask:
    prompt: str
    max_tokens: int
    temperature: float


QUOTES_TASK = CompletionTask(QUOTES_PROMPT, max_tokens=150, temperature=0.5)
TITLE_TASK = CompletionTask(TITLE_PROMPT, max_tokens=60, temperature=0.7)
DESCRIPTION_TASK = CompletionTask(DESCRIPTION_PROMPT, max_tokens=200, temperature=0.7)
TAGS_TASK = CompletionTask(TAGS_PROMPT, max_tokens=200, temperature=0.7)


def parse_quotes(text: str) -> List[str]:
    """Keep only list-marked lines, with the marker and surrounding whitespace removed."""
    quotes = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line.startswith(QUOTE_MARKERS):
            continue
        quote = line[1:].strip()
        if quote:
            quotes.append(quote)
    return quotes


def parse_tags(text: str) -> List[str]:
    return [tag.strip() for tag in (text or "").split(",") if tag.strip()]


@dataclass
class GeneratedMetadata:
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    failures: Dict[str, MetadataGenerationFailed] = field(default_factory=dict)


class ContentEnricher:
    """Derives quotes, title, description and tags from a transcript via chat completions."""

    def __init__(self, config: OpenAIConfig, http: httpx.AsyncClient):
        self.config = config
        self.http = http

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/chat/completions"

    async def complete(self, task: CompletionTask, transcript: str) -> str:
        """
        Run one completion and return `choices[0].message.content`.

        Raises httpx.HTTPError on transport/status errors and ValueError on a
        malformed body; callers translate these into their typed failure.
        """
        payload = {
            "model": self.config.completion_model,
            "messages": [{"role": "user", "content": task.prompt.format(transcript=transcript)}],
            "max_tokens": task.max_tokens,
            "temperature": task.temperature,
        }
        response = await self.http.post(
            self.endpoint,
            headers={"Authorization": f"Bearer {self.config.api_key}"},
            json=payload,
        )
        response.raise_for_status()

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Malformed completion response: {response.text[:500]}") from e
        if not isinstance(content, str):
            raise ValueError("Completion content is not a string")
        return content

    async def extract_quotes(self, transcript: str) -> List[str]:
        try:
            content = await self.complete(QUOTES_TASK, transcript)
        except (httpx.HTTPError, ValueError) as e:
            raise QuoteExtractionFailed(str(e)) from e

        quotes = parse_quotes(content)
        logger.info(f"Extracted {len(quotes)} quotes")
        return quotes

    async def _generate(self, name: str, task: CompletionTask, transcript: str) -> str:
        try:
            return (await self.complete(task, transcript)).strip()
        except (httpx.HTTPError, ValueError) as e:
            raise MetadataGenerationFailed(name, str(e)) from e

    async def generate_title(self, transcript: str) -> str:
        return await self._generate("title", TITLE_TASK, transcript)

    async def generate_description(self, transcript: str) -> str:
        return await self._generate("description", DESCRIPTION_TASK, transcript)

    async def generate_tags(self, transcript: str) -> List[str]:
        return parse_tags(await self._generate("tags", TAGS_TASK, transcript))

    async def generate_metadata(self, transcript: str) -> GeneratedMetadata:
        """
        Request title, description and tags concurrently.

        Each part succeeds or fails on its own; failures are collected, not raised.
        """
        results = await asyncio.gather(
            self.generate_title(transcript),
            self.generate_description(transcript),
            self.generate_tags(transcript),
            return_exceptions=True,
        )

        metadata = GeneratedMetadata()
        for name, result in zip(("title", "description", "tags"), results):
            if isinstance(result, MetadataGenerationFailed):
                metadata.failures[name] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                setattr(metadata, name, result)
        return metadata
