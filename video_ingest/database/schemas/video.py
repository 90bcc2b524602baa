from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProcessingStatus(str, Enum):
    UPLOADING = "uploading"
    TRANSCRIBING = "transcribing"
    EXTRACTING_QUOTES = "extracting_quotes"
    GENERATING_METADATA = "generating_metadata"
    READY = "ready"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.READY, ProcessingStatus.ERROR)


NON_TERMINAL_STATUSES = [s for s in ProcessingStatus if not s.is_terminal]

# Written by the pipeline; cleared whenever a video id is (re)created
PIPELINE_FIELDS = (
    "processingError",
    "videoURL",
    "videoURLExpiration",
    "transcript",
    "quotes",
    "autoTitle",
    "autoDescription",
    "autoTags",
    "title",
    "description",
    "tags",
)


class VideoRecord(BaseModel):
    """One document per video in the `videos` collection, stored with camelCase keys."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True, validate_default=True)

    id: str = Field(..., alias="_id")
    original_filename: str = Field(..., alias="originalFileName")
    content_type: str = Field(..., alias="contentType")
    size: int = 0

    processing_status: ProcessingStatus = Field(default=ProcessingStatus.UPLOADING, alias="processingStatus")
    processing_error: Optional[str] = Field(default=None, alias="processingError")

    video_url: Optional[str] = Field(default=None, alias="videoURL")
    video_url_expiration: Optional[datetime] = Field(default=None, alias="videoURLExpiration")

    transcript: Optional[str] = None
    quotes: Optional[List[str]] = None

    auto_title: Optional[str] = Field(default=None, alias="autoTitle")
    auto_description: Optional[str] = Field(default=None, alias="autoDescription")
    auto_tags: Optional[List[str]] = Field(default=None, alias="autoTags")
    title: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None

    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    def to_document(self) -> dict:
        """Serialize for the store, leaving unset optional fields out entirely."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="python")
