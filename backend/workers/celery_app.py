"""
Celery Application Configuration
"""

from celery import Celery
from celery.schedules import crontab

from core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "shelfsignal",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.schedule_timezone,
    enable_utc=True,
    task_track_started=True,
    worker_prefetch_multiplier=1,
    task_routes={
        "workers.analysis.*": {"queue": "analytics"},
    },
    # ── Celery Beat Schedule ─────────────────────────────────────────
    beat_schedule={
        # 00:00, 06:00, 12:00, 18:00 local time
        "analyze-inventory-6h": {
            "task": "workers.analysis.analyze_inventory",
            "schedule": crontab(minute=0, hour="*/6"),
            "options": {"queue": "analytics"},
        },
        "cleanup-result-cache-hourly": {
            "task": "workers.analysis.cleanup_cache",
            "schedule": crontab(minute=15),
            "options": {"queue": "analytics"},
        },
    },
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["workers"], related_name="analysis")
