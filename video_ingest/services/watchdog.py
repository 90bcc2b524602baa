import logging
from datetime import datetime, timedelta
from typing import Callable

from video_ingest.database.repositories import VideoRepository
from video_ingest.utils.task_helpers import utc_now

logger = logging.getLogger(__name__)

STALLED_MESSAGE = "Processing timed out"


async def sweep_stalled_videos(
    videos: VideoRepository,
    stale_after: timedelta,
    clock: Callable[[], datetime] = utc_now,
) -> int:
    """
    Fail videos stuck in a non-terminal status for longer than `stale_after`.

    A run killed by the worker time limit never writes `error` itself; this
    sweep is what eventually closes those records.
    """
    cutoff = clock() - stale_after
    count = await videos.mark_stalled(cutoff, STALLED_MESSAGE)
    if count:
        logger.warning(f"Marked {count} stalled videos as error (untouched since {cutoff.isoformat()})")
    return count
