import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScratchFiles:
    video_path: str
    audio_path: str

    def all(self):
        return (self.video_path, self.audio_path)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def video_id_from_object_name(object_name: str) -> str:
    """
    Derive the stable video id from a storage object name.

    The uploader names the object after the id it wants, so
    "videos/abc123.mp4" always maps to "abc123".
    """
    base = os.path.basename(object_name)
    video_id, _ = os.path.splitext(base)
    return video_id


def scratch_files_for(video_id: str, object_name: str, scratch_dir: str) -> ScratchFiles:
    """
    Local paths for one run, named by video id so concurrent runs for
    different videos never collide.
    """
    Path(scratch_dir).mkdir(parents=True, exist_ok=True)
    _, ext = os.path.splitext(object_name)
    return ScratchFiles(
        video_path=os.path.join(scratch_dir, f"{video_id}{ext or '.mp4'}"),
        audio_path=os.path.join(scratch_dir, f"{video_id}.mp3"),
    )


def cleanup_scratch_files(files: ScratchFiles):
    """Delete whatever scratch files exist. Failures are logged, never raised."""
    for path in files.all():
        if not os.path.exists(path):
            continue
        try:
            os.remove(path)
            logger.info(f"Removed scratch file {path}")
        except OSError:
            logger.exception(f"Failed to remove scratch file {path}")
