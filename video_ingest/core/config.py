import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent.parent  # go up to project root
env_path = BASE_DIR / ".env.development"

# .env.development wins when present, plain .env is the fallback
if env_path.exists():
    load_dotenv(env_path)
else:
    load_dotenv(BASE_DIR / ".env")

# S3 SigV4 presigned URLs are capped at 7 days
MAX_SIGNED_URL_DAYS = 7


@dataclass(frozen=True)
class OpenAIConfig:
    """Credentials and endpoint settings for the transcription/completion service."""
    api_key: str
    base_url: str = "https://api.openai.com/v1"
    transcription_model: str = "whisper-1"
    completion_model: str = "gpt-4"
    timeout_seconds: float = 600.0


class Settings:
    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    MONGO_DB: str = os.getenv("MONGO_DB", "video_ingest_db")
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    AWS_REGION: str = os.getenv("AWS_REGION")
    AWS_ACCESS_KEY_ID: str = os.getenv("AWS_ACCESS_KEY_ID")
    AWS_SECRET_ACCESS_KEY: str = os.getenv("AWS_SECRET_ACCESS_KEY")
    AWS_ENDPOINT_URL: str = os.getenv("AWS_ENDPOINT_URL")

    VIDEO_PREFIX: str = os.getenv("VIDEO_PREFIX", "videos/")
    SIGNED_URL_EXPIRATION_DAYS: int = int(os.getenv("SIGNED_URL_EXPIRATION_DAYS", "6"))
    SCRATCH_DIR: str = os.getenv("SCRATCH_DIR", tempfile.gettempdir())

    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    TRANSCRIPTION_MODEL: str = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")
    COMPLETION_MODEL: str = os.getenv("COMPLETION_MODEL", "gpt-4")
    OPENAI_TIMEOUT_SECONDS: float = float(os.getenv("OPENAI_TIMEOUT_SECONDS", "600"))

    PIPELINE_TIMEOUT_SECONDS: int = int(os.getenv("PIPELINE_TIMEOUT_SECONDS", "540"))
    STALE_VIDEO_MINUTES: int = int(os.getenv("STALE_VIDEO_MINUTES", "0"))

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    def openai_config(self) -> OpenAIConfig:
        return OpenAIConfig(
            api_key=self.OPENAI_API_KEY,
            base_url=self.OPENAI_BASE_URL,
            transcription_model=self.TRANSCRIPTION_MODEL,
            completion_model=self.COMPLETION_MODEL,
            timeout_seconds=self.OPENAI_TIMEOUT_SECONDS,
        )

    def watchdog_enabled(self) -> bool:
        """
        The stalled-run sweep only runs when its threshold is past the task hard limit,
        otherwise it could close a run that is still working.
        """
        if self.STALE_VIDEO_MINUTES <= 0:
            return False
        if self.STALE_VIDEO_MINUTES * 60 <= self.PIPELINE_TIMEOUT_SECONDS:
            logger.warning(
                f"STALE_VIDEO_MINUTES={self.STALE_VIDEO_MINUTES} does not exceed "
                f"PIPELINE_TIMEOUT_SECONDS={self.PIPELINE_TIMEOUT_SECONDS}, stalled-run sweep disabled"
            )
            return False
        return True


settings = Settings()


def warn_missing_credentials():
    """
    Log a warning at process start when no completion/transcription key is set.

    Requests are not gated on the key; they will fail authentication instead.
    """
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY environment variable is not set")
