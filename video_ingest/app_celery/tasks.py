import asyncio
import logging
from datetime import timedelta

import httpx

from video_ingest.app_celery.celery_app import celery_app
from video_ingest.core.config import settings
from video_ingest.core.database import mongo_session
from video_ingest.core.storage import BlobStore
from video_ingest.database.repositories import SecondBrainRepository, VideoRepository
from video_ingest.services.content_enrichment import ContentEnricher
from video_ingest.services.pipeline import PipelineOrchestrator
from video_ingest.services.signed_urls import SignedURLIssuer
from video_ingest.services.transcription import TranscriptionClient
from video_ingest.services.watchdog import sweep_stalled_videos

logger = logging.getLogger(__name__)


async def run_pipeline(bucket: str, object_name: str):
    openai_config = settings.openai_config()
    blobs = BlobStore()

    async with mongo_session() as db, httpx.AsyncClient(timeout=openai_config.timeout_seconds) as http:
        orchestrator = PipelineOrchestrator(
            blobs=blobs,
            videos=VideoRepository(db),
            second_brain=SecondBrainRepository(db),
            transcriber=TranscriptionClient(openai_config, http),
            enricher=ContentEnricher(openai_config, http),
            signer=SignedURLIssuer(blobs, settings.SIGNED_URL_EXPIRATION_DAYS),
            scratch_dir=settings.SCRATCH_DIR,
            video_prefix=settings.VIDEO_PREFIX,
        )
        return await orchestrator.handle_upload(bucket, object_name)


async def run_sweep() -> int:
    async with mongo_session() as db:
        return await sweep_stalled_videos(
            VideoRepository(db),
            timedelta(minutes=settings.STALE_VIDEO_MINUTES),
        )


# Hard limit only: a run killed here keeps its last status, the sweep closes it later
@celery_app.task(name="process_video", time_limit=settings.PIPELINE_TIMEOUT_SECONDS)
def process_video(bucket: str, object_name: str):
    result = asyncio.run(run_pipeline(bucket, object_name))
    logger.info(f"Pipeline finished for {object_name}: {result}")

    return {
        "object_name": object_name,
        "video_id": result.video_id,
        "status": result.status.value if result.status else "skipped",
        "error": result.error,
    }


@celery_app.task(name="sweep_stalled_videos")
def sweep_stalled_videos_task():
    if not settings.watchdog_enabled():
        return {"marked": 0}
    return {"marked": asyncio.run(run_sweep())}
