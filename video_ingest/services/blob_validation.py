import logging
from dataclasses import dataclass
from typing import Optional

from video_ingest.core.storage import BlobMetadata, BlobRef, BlobStore

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    ok: bool
    metadata: Optional[BlobMetadata] = None
    reason: str = ""


def is_video_content_type(content_type: str) -> bool:
    return (content_type or "").strip().lower().startswith("video/")


class BlobValidator:
    """
    Accepts a finalized object only when its declared content type is video/*.

    Only the metadata is inspected; a mislabeled file passes.
    """

    def __init__(self, blobs: BlobStore):
        self.blobs = blobs

    async def validate(self, ref: BlobRef) -> ValidationResult:
        metadata = await self.blobs.get_metadata(ref)
        if not is_video_content_type(metadata.content_type):
            reason = f"content type {metadata.content_type!r} is not a video"
            logger.info(f"Rejected upload {ref.name}: {reason}")
            return ValidationResult(ok=False, metadata=metadata, reason=reason)
        return ValidationResult(ok=True, metadata=metadata)
