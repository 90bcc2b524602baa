import json
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from video_ingest.core.config import OpenAIConfig
from video_ingest.core.errors import AudioExtractionFailed, RunAbandoned, StorageError
from video_ingest.core.storage import BlobMetadata
from video_ingest.database.schemas.video import (
    NON_TERMINAL_STATUSES,
    PIPELINE_FIELDS,
    ProcessingStatus,
    VideoRecord,
)
from video_ingest.services.content_enrichment import ContentEnricher
from video_ingest.services.pipeline import PipelineOrchestrator
from video_ingest.services.signed_urls import SignedURLIssuer
from video_ingest.services.transcription import TranscriptionClient

BUCKET = "talks-bucket"
API_BASE = "https://api.test/v1"

QUOTES_COMPLETION = "- Discipline beats motivation.\n- Small habits compound.\nThanks for watching"
TITLE_COMPLETION = "  Why Discipline Beats Motivation  "
DESCRIPTION_COMPLETION = "A short talk on building habits that last."
TAGS_COMPLETION = "focus, discipline,  habits ,growth"
TRANSCRIPT = "Today we talk about discipline and why small habits compound over time."


class FakeBlobStore:
    def __init__(self, calls):
        self.calls = calls
        self.objects = {}
        self.fail_signing = False

    def put(self, name, content_type="video/mp4", data=b"fake-video", user_metadata=None):
        self.objects[name] = (
            BlobMetadata(name=name, content_type=content_type, size=len(data), user_metadata=user_metadata or {}),
            data,
        )

    async def get_metadata(self, ref):
        self.calls.append(("head", ref.name))
        if ref.name not in self.objects:
            raise StorageError(f"Could not read metadata for s3://{ref.bucket}/{ref.name}: 404")
        return self.objects[ref.name][0]

    async def generate_signed_url(self, ref, expires_in):
        self.calls.append(("sign", ref.name))
        if self.fail_signing:
            raise StorageError("Could not sign URL: AccessDenied")
        return f"https://{ref.bucket}.s3.test/{ref.name}?X-Amz-Expires={expires_in}&X-Amz-Signature=abc"

    async def download(self, ref, destination):
        self.calls.append(("download", ref.name))
        Path(destination).write_bytes(self.objects[ref.name][1])
        return destination


class InMemoryVideoRepository:
    """Mirrors VideoRepository's write semantics over plain dicts."""

    def __init__(self, calls):
        self.calls = calls
        self.documents = {}
        self.status_history = {}
        self.fail_mark_error = False
        self.fail_fields = set()

    async def create(self, record: VideoRecord):
        self.calls.append(("create", record.id))
        document = self.documents.get(record.id, {})
        for name in PIPELINE_FIELDS:
            document.pop(name, None)
        document.update(record.to_document())
        document.setdefault("createdAt", datetime.now(timezone.utc))
        document["updatedAt"] = datetime.now(timezone.utc)
        self.documents[record.id] = document
        self.status_history[record.id] = [document["processingStatus"]]

    async def update(self, video_id, fields):
        self.calls.append(("update", video_id, tuple(sorted(fields))))
        if self.fail_fields & set(fields):
            raise RuntimeError("write timeout")
        document = self.documents.get(video_id)
        if document is None or document["processingStatus"] == ProcessingStatus.ERROR.value:
            raise RunAbandoned(video_id)
        document.update(fields)
        self.documents[video_id]["updatedAt"] = datetime.now(timezone.utc)

    async def set_status(self, video_id, status, **fields):
        await self.update(video_id, {"processingStatus": status.value, **fields})
        self.status_history[video_id].append(status.value)

    async def mark_error(self, video_id, message):
        if self.fail_mark_error:
            raise RuntimeError("store unavailable")
        await self.set_status(video_id, ProcessingStatus.ERROR, processingError=message)

    async def get(self, video_id):
        document = self.documents.get(video_id)
        return VideoRecord.model_validate(document) if document else None

    async def mark_stalled(self, cutoff, message):
        count = 0
        pending = {s.value for s in NON_TERMINAL_STATUSES}
        for document in self.documents.values():
            if document["processingStatus"] in pending and document["updatedAt"] < cutoff:
                document.update(processingStatus="error", processingError=message)
                self.status_history.setdefault(document["_id"], []).append("error")
                count += 1
        return count


class InMemorySecondBrainRepository:
    def __init__(self):
        self.entries = []
        self.fail = False

    async def propagate(self, video_id, quotes, title=None):
        if self.fail:
            raise RuntimeError("batch commit failed")
        count = 0
        for entry in self.entries:
            if entry["videoId"] == video_id:
                entry["quotes"] = quotes
                if title:
                    entry["videoTitle"] = title
                count += 1
        return count


class FakeAudioExtractor:
    def __init__(self, calls):
        self.calls = calls
        self.fail = False

    async def extract(self, video_path, audio_path):
        self.calls.append(("extract", video_path))
        if self.fail:
            raise AudioExtractionFailed("FFmpeg failed to extract audio: moov atom not found")
        Path(audio_path).write_bytes(b"fake-mp3")
        return audio_path


class FakeOpenAI:
    """Routes requests by endpoint and prompt; `failures` holds task names to answer with 500."""

    def __init__(self, calls):
        self.calls = calls
        self.failures = set()
        self.requests = []
        self.transcript = TRANSCRIPT
        self.completions = {
            "quotes": QUOTES_COMPLETION,
            "title": TITLE_COMPLETION,
            "description": DESCRIPTION_COMPLETION,
            "tags": TAGS_COMPLETION,
        }

    @staticmethod
    def task_for(prompt):
        if "insightful quotes" in prompt:
            return "quotes"
        if "catchy title" in prompt:
            return "title"
        if "video description" in prompt:
            return "description"
        return "tags"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/audio/transcriptions"):
            self.calls.append(("http", "transcription"))
            if "transcription" in self.failures:
                return httpx.Response(500, text="upstream error")
            return httpx.Response(200, text=self.transcript)

        prompt = json.loads(request.content)["messages"][0]["content"]
        task = self.task_for(prompt)
        self.calls.append(("http", task))
        if task in self.failures:
            return httpx.Response(500, json={"error": {"message": f"{task} exploded"}})
        return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": self.completions[task]}}]})


@pytest.fixture
def calls():
    return []


@pytest.fixture
def openai_config():
    return OpenAIConfig(api_key="sk-test", base_url=API_BASE)


@pytest.fixture
def fake_openai(calls):
    return FakeOpenAI(calls)


@pytest_asyncio.fixture
async def http_client(fake_openai):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_openai)) as client:
        yield client


@pytest.fixture
def blobs(calls):
    return FakeBlobStore(calls)


@pytest.fixture
def videos(calls):
    return InMemoryVideoRepository(calls)


@pytest.fixture
def second_brain():
    return InMemorySecondBrainRepository()


@pytest.fixture
def audio_extractor(calls):
    return FakeAudioExtractor(calls)


@pytest.fixture
def scratch_dir(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def orchestrator(blobs, videos, second_brain, audio_extractor, openai_config, http_client, scratch_dir):
    return PipelineOrchestrator(
        blobs=blobs,
        videos=videos,
        second_brain=second_brain,
        transcriber=TranscriptionClient(openai_config, http_client),
        enricher=ContentEnricher(openai_config, http_client),
        signer=SignedURLIssuer(blobs, expiration_days=6),
        audio_extractor=audio_extractor,
        scratch_dir=str(scratch_dir),
    )
