import logging
from typing import List, Optional
from urllib.parse import unquote_plus

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field

from video_ingest.app_celery.tasks import process_video
from video_ingest.core.database import get_db
from video_ingest.database.repositories import VideoRepository

logger = logging.getLogger(__name__)
router = APIRouter()


class S3UploadEvent(BaseModel):
    bucket: str
    key: str
    status: Optional[str] = None


class S3Bucket(BaseModel):
    name: str


class S3Object(BaseModel):
    key: str
    size: Optional[int] = None


class S3Entity(BaseModel):
    bucket: S3Bucket
    object: S3Object


class S3EventRecord(BaseModel):
    event_name: str = Field(default="", alias="eventName")
    s3: S3Entity


class S3Notification(BaseModel):
    records: List[S3EventRecord] = Field(default_factory=list, alias="Records")


def _enqueue(bucket: str, key: str) -> str:
    task = process_video.delay(bucket, key)
    logger.info(f"Triggered process_video for s3://{bucket}/{key} (task {task.id})")
    return task.id


@router.post("/webhook", status_code=status.HTTP_202_ACCEPTED)
async def video_upload_webhook(event: S3UploadEvent):
    logger.info(f"Webhook received: {event}")
    task_id = _enqueue(event.bucket, event.key)

    return {
        "message": "Webhook processed, background processing started",
        "task_id": task_id,
    }


@router.post("/s3-notifications", status_code=status.HTTP_202_ACCEPTED)
async def s3_notifications(notification: S3Notification):
    """Native S3 event notification body; keys arrive URL-encoded."""
    task_ids = []
    for record in notification.records:
        if record.event_name and not record.event_name.startswith("ObjectCreated:"):
            continue
        task_ids.append(_enqueue(record.s3.bucket.name, unquote_plus(record.s3.object.key)))

    return {"message": f"Queued {len(task_ids)} uploads", "task_ids": task_ids}


@router.get("/{video_id}")
async def get_video(video_id: str):
    record = await VideoRepository(get_db()).get(video_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Video not found")
    return record.model_dump(by_alias=True, exclude_none=True, mode="json")
