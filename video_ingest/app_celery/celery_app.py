from celery import Celery
from celery.signals import worker_process_init

from video_ingest.core.config import settings, warn_missing_credentials

celery_app = Celery(
    "video_ingest",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

# Stalled-run sweep is opt-in and must outlast the task hard limit
if settings.watchdog_enabled():
    celery_app.conf.beat_schedule = {
        "sweep-stalled-videos": {
            "task": "sweep_stalled_videos",
            "schedule": 300.0,
        },
    }

@worker_process_init.connect
def init_worker(**kwargs):
    warn_missing_credentials()

# Auto-discover tasks inside video_ingest/app_celery
celery_app.autodiscover_tasks(["video_ingest.app_celery"])
