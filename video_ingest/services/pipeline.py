"""
Video ingestion pipeline.

One run per finalized upload:

    validate → create record (uploading) → signed URL → download
      → transcribing: extract audio, transcribe, save transcript
      → extracting_quotes: save quotes
      → generating_metadata: title / description / tags in parallel (non-fatal)
      → ready → refresh second-brain entries (best effort)

Any other failure after the record exists ends the run in `error`. Scratch
files are removed on every path.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from video_ingest.core.errors import RunAbandoned
from video_ingest.core.storage import BlobRef, BlobStore
from video_ingest.database.repositories import SecondBrainRepository, VideoRepository
from video_ingest.database.schemas.video import ProcessingStatus, VideoRecord
from video_ingest.services.audio_extraction import AudioExtractor
from video_ingest.services.blob_validation import BlobValidator
from video_ingest.services.content_enrichment import ContentEnricher, GeneratedMetadata
from video_ingest.services.signed_urls import SignedURLIssuer
from video_ingest.services.transcription import TranscriptionClient
from video_ingest.utils.task_helpers import (
    cleanup_scratch_files,
    scratch_files_for,
    video_id_from_object_name,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    video_id: Optional[str]
    status: Optional[ProcessingStatus]
    error: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.status is None


class PipelineOrchestrator:
    def __init__(
        self,
        blobs: BlobStore,
        videos: VideoRepository,
        second_brain: SecondBrainRepository,
        transcriber: TranscriptionClient,
        enricher: ContentEnricher,
        signer: SignedURLIssuer,
        audio_extractor: Optional[AudioExtractor] = None,
        scratch_dir: str = "/tmp",
        video_prefix: str = "videos/",
    ):
        self.blobs = blobs
        self.videos = videos
        self.second_brain = second_brain
        self.transcriber = transcriber
        self.enricher = enricher
        self.signer = signer
        self.validator = BlobValidator(blobs)
        self.audio_extractor = audio_extractor or AudioExtractor()
        self.scratch_dir = scratch_dir
        self.video_prefix = video_prefix

    async def handle_upload(self, bucket: str, object_name: str) -> PipelineResult:
        """Process one object-finalized event. Never raises."""
        if not object_name.startswith(self.video_prefix):
            logger.info(f"Not a video upload, skipping processing: {object_name}")
            return PipelineResult(video_id=None, status=None)

        ref = BlobRef(bucket=bucket, name=object_name)
        video_id = video_id_from_object_name(object_name)
        scratch = None
        created = False
        logger.info(f"Processing video with ID: {video_id}")

        try:
            scratch = scratch_files_for(video_id, object_name, self.scratch_dir)
            validation = await self.validator.validate(ref)
            if not validation.ok:
                return PipelineResult(video_id=None, status=None, error=validation.reason)

            metadata = validation.metadata
            await self.videos.create(
                VideoRecord(
                    id=video_id,
                    original_filename=metadata.original_filename,
                    content_type=metadata.content_type,
                    size=metadata.size,
                    processing_status=ProcessingStatus.UPLOADING,
                )
            )
            created = True

            signed = await self.signer.issue(ref)
            await self.videos.update(video_id, {
                "videoURL": signed.url,
                "videoURLExpiration": signed.expires_at,
            })

            await self.blobs.download(ref, scratch.video_path)

            await self.videos.set_status(video_id, ProcessingStatus.TRANSCRIBING)
            await self.audio_extractor.extract(scratch.video_path, scratch.audio_path)
            transcript = await self.transcriber.transcribe(scratch.audio_path)
            await self.videos.update(video_id, {"transcript": transcript})

            await self.videos.set_status(video_id, ProcessingStatus.EXTRACTING_QUOTES)
            quotes = await self.enricher.extract_quotes(transcript)
            await self.videos.update(video_id, {"quotes": quotes})

            await self.videos.set_status(video_id, ProcessingStatus.GENERATING_METADATA)
            generated = await self._generate_metadata(video_id, transcript)

            await self.videos.set_status(video_id, ProcessingStatus.READY)
            await self._propagate_to_second_brain(video_id, quotes, generated.title)

            return PipelineResult(video_id=video_id, status=ProcessingStatus.READY)

        except RunAbandoned as e:
            logger.warning(f"Stopping run for video {video_id}: {e}")
            return PipelineResult(video_id=video_id, status=ProcessingStatus.ERROR, error=str(e))

        except Exception as e:
            logger.exception(f"Error processing video {video_id}")
            message = str(e) or e.__class__.__name__
            if not created:
                return PipelineResult(video_id=None, status=None, error=message)
            await self._record_failure(video_id, message)
            return PipelineResult(video_id=video_id, status=ProcessingStatus.ERROR, error=message)

        finally:
            if scratch is not None:
                cleanup_scratch_files(scratch)

    async def _generate_metadata(self, video_id: str, transcript: str) -> GeneratedMetadata:
        """Title, description and tags. Nothing here fails the run except losing the document."""
        try:
            generated = await self.enricher.generate_metadata(transcript)
        except Exception:
            logger.exception(f"Metadata generation failed for video {video_id}, continuing")
            return GeneratedMetadata()

        for name, failure in generated.failures.items():
            logger.warning(f"Continuing without {name} for video {video_id}: {failure}")

        fields = {}
        if generated.title:
            fields.update(autoTitle=generated.title, title=generated.title)
        if generated.description:
            fields.update(autoDescription=generated.description, description=generated.description)
        if generated.tags:
            fields.update(autoTags=generated.tags, tags=generated.tags)

        if not fields:
            return generated

        try:
            await self.videos.update(video_id, fields)
        except RunAbandoned:
            raise
        except Exception:
            logger.exception(f"Failed to save generated metadata for video {video_id}, continuing")
            return GeneratedMetadata()

        logger.info(f"Saved generated metadata for video {video_id}: {sorted(fields)}")
        return generated

    async def _propagate_to_second_brain(self, video_id: str, quotes: List[str], title: Optional[str]):
        try:
            updated = await self.second_brain.propagate(video_id, quotes, title)
        except Exception:
            logger.exception(f"Failed to update second brain entries for video {video_id}")
            return
        if updated:
            logger.info(f"Updated {updated} second brain entries for video {video_id}")

    async def _record_failure(self, video_id: str, message: str):
        try:
            await self.videos.mark_error(video_id, message)
        except Exception:
            logger.exception(f"Failed to update error status for video {video_id}")
