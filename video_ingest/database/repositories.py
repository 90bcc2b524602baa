import logging
from datetime import datetime, timezone
from typing import List, Optional

from video_ingest.core.errors import RunAbandoned
from video_ingest.database.schemas.video import (
    NON_TERMINAL_STATUSES,
    PIPELINE_FIELDS,
    ProcessingStatus,
    VideoRecord,
)

logger = logging.getLogger(__name__)

VIDEOS_COLLECTION = "videos"
SECOND_BRAIN_COLLECTION = "second_brain"


class VideoRepository:
    """Partial-update access to the `videos` collection, keyed by video id."""

    def __init__(self, db):
        self.collection = db[VIDEOS_COLLECTION]

    async def create(self, record: VideoRecord):
        """
        Write the full initial record for a video.

        Re-running the same id resets the pipeline-derived fields so the
        document only reflects the current run.
        """
        document = record.to_document()
        document.pop("_id", None)
        document.pop("updatedAt", None)
        created_at = document.pop("createdAt", None) or datetime.now(timezone.utc)

        stale = {name: "" for name in PIPELINE_FIELDS if name not in document}
        update = {
            "$set": document,
            "$setOnInsert": {"createdAt": created_at},
            "$currentDate": {"updatedAt": True},
        }
        if stale:
            update["$unset"] = stale

        await self.collection.update_one({"_id": record.id}, update, upsert=True)
        logger.info(f"Video document created | video_id={record.id} | status={document.get('processingStatus')}")

    async def update(self, video_id: str, fields: dict):
        """
        Partial update of a live run.

        Documents already in `error` are never written again; finding none to
        update raises RunAbandoned.
        """
        result = await self.collection.update_one(
            {"_id": video_id, "processingStatus": {"$ne": ProcessingStatus.ERROR.value}},
            {"$set": fields, "$currentDate": {"updatedAt": True}},
        )
        if result.matched_count == 0:
            logger.warning(f"No live video found for video_id={video_id}")
            raise RunAbandoned(video_id)

    async def set_status(self, video_id: str, status: ProcessingStatus, **fields):
        await self.update(video_id, {"processingStatus": status.value, **fields})
        logger.info(f"Video status updated | video_id={video_id} | status={status.value}")

    async def mark_error(self, video_id: str, message: str):
        await self.set_status(video_id, ProcessingStatus.ERROR, processingError=message)

    async def get(self, video_id: str) -> Optional[VideoRecord]:
        document = await self.collection.find_one({"_id": video_id})
        if document is None:
            return None
        return VideoRecord.model_validate(document)

    async def mark_stalled(self, cutoff: datetime, message: str) -> int:
        """Move every non-terminal video last touched before `cutoff` to error."""
        result = await self.collection.update_many(
            {
                "processingStatus": {"$in": [s.value for s in NON_TERMINAL_STATUSES]},
                "updatedAt": {"$lt": cutoff},
            },
            {
                "$set": {"processingStatus": ProcessingStatus.ERROR.value, "processingError": message},
                "$currentDate": {"updatedAt": True},
            },
        )
        return result.modified_count


class SecondBrainRepository:
    """Denormalized per-user entries that reference a video by `videoId`."""

    def __init__(self, db):
        self.collection = db[SECOND_BRAIN_COLLECTION]

    async def propagate(self, video_id: str, quotes: List[str], title: Optional[str] = None) -> int:
        fields = {"quotes": quotes}
        if title:
            fields["videoTitle"] = title

        result = await self.collection.update_many(
            {"videoId": video_id},
            {"$set": fields, "$currentDate": {"updatedAt": True}},
        )
        return result.modified_count
