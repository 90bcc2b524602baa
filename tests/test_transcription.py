import httpx
import pytest

from video_ingest.core.errors import TranscriptionFailed
from video_ingest.services.transcription import TranscriptionClient


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "abc123.mp3"
    path.write_bytes(b"ID3-fake-audio")
    return str(path)


def make_client(openai_config, handler):
    return TranscriptionClient(openai_config, httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.mark.asyncio
async def test_multipart_request_and_plain_text_response(openai_config, audio_file):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text="  hello world \n")

    client = make_client(openai_config, handler)
    transcript = await client.transcribe(audio_file)

    assert transcript == "hello world"
    request = seen[0]
    assert str(request.url) == "https://api.test/v1/audio/transcriptions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="model"' in body and b"whisper-1" in body
    assert b'name="response_format"' in body and b"text" in body
    assert b'name="file"; filename="abc123.mp3"' in body
    assert b"ID3-fake-audio" in body


@pytest.mark.asyncio
async def test_error_status_raises(openai_config, audio_file):
    client = make_client(openai_config, lambda request: httpx.Response(401, text="invalid api key"))

    with pytest.raises(TranscriptionFailed) as excinfo:
        await client.transcribe(audio_file)

    assert "401" in str(excinfo.value)


@pytest.mark.asyncio
async def test_empty_transcript_raises(openai_config, audio_file):
    client = make_client(openai_config, lambda request: httpx.Response(200, text="   "))

    with pytest.raises(TranscriptionFailed):
        await client.transcribe(audio_file)


@pytest.mark.asyncio
async def test_missing_audio_file_raises(openai_config, tmp_path):
    client = make_client(openai_config, lambda request: httpx.Response(200, text="unused"))

    with pytest.raises(TranscriptionFailed):
        await client.transcribe(str(tmp_path / "missing.mp3"))
