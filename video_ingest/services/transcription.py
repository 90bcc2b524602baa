import logging
import os

import httpx

from video_ingest.core.config import OpenAIConfig
from video_ingest.core.errors import TranscriptionFailed

logger = logging.getLogger(__name__)


class TranscriptionClient:
    """
    Speech-to-text over the OpenAI-compatible /audio/transcriptions endpoint.

    Single attempt, no retry. Any transport error, non-2xx response or empty
    body raises TranscriptionFailed.
    """

    def __init__(self, config: OpenAIConfig, http: httpx.AsyncClient):
        self.config = config
        self.http = http

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/audio/transcriptions"

    async def transcribe(self, audio_path: str) -> str:
        """Upload `audio_path` and return the plain-text transcript."""
        try:
            with open(audio_path, "rb") as audio_file:
                response = await self.http.post(
                    self.endpoint,
                    headers={"Authorization": f"Bearer {self.config.api_key}"},
                    data={"model": self.config.transcription_model, "response_format": "text"},
                    files={"file": (os.path.basename(audio_path), audio_file, "audio/mpeg")},
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TranscriptionFailed(
                f"Transcription request failed with status {e.response.status_code}: {e.response.text[:500]}"
            ) from e
        except (httpx.HTTPError, OSError) as e:
            raise TranscriptionFailed(f"Transcription request failed: {e}") from e

        transcript = response.text.strip()
        if not transcript:
            raise TranscriptionFailed("Transcription response was empty")

        logger.info(f"Transcription completed ({len(transcript)} chars)")
        return transcript
