"""
Inventory Analysis Worker — scheduled recomputation of the cached analysis.

Runs every 6 hours via Celery beat:
  1. Fetch the product snapshot and compute the analysis
  2. If high-priority issues exist and a narrative generator factory is
     configured (settings.narrative_generator, resolved on every run),
     attach its commentary (a generator failure only drops the narrative)
  3. Store the payload in the result cache with the configured TTL

A failed run is logged and reported in the task result, never raised:
one bad run must not disturb the beat schedule.

Schedule: crontab(minute=0, hour="*/6")
Queue: analytics
"""

import asyncio
from datetime import datetime, timezone

import structlog
from celery.utils.imports import symbol_by_name

from analytics.narrative import NarrativeGenerator, attach_narrative
from cache.store import MemoryCacheBackend
from workers.celery_app import celery_app

logger = structlog.get_logger()

# With cache_backend == "memory" the analysis job and the cleanup job must see
# the same entries, so every run in this worker process shares one backend.
# Nothing else is kept between runs; use cache_backend == "redis" to share the
# cache across processes.
_MEMORY_BACKEND = MemoryCacheBackend()


def load_narrative_generator(settings) -> NarrativeGenerator | None:
    """
    Build the generator named by settings.narrative_generator.

    None when narratives are disabled or no factory is configured.

    Raises:
        ImportError / AttributeError if the factory path does not resolve.
    """
    if not settings.narrative_enabled or not settings.narrative_generator:
        return None
    factory = symbol_by_name(settings.narrative_generator)
    return factory()


@celery_app.task(
    name="workers.analysis.analyze_inventory",
    bind=True,
    acks_late=True,
)
def analyze_inventory(self):
    """Recompute the inventory analysis and refresh the result cache."""
    run_id = self.request.id or "manual"
    logger.info("analysis_job.started", run_id=run_id)

    async def _analyze():
        from analytics.service import build_status_service
        from core.config import get_settings

        settings = get_settings()
        service = build_status_service(settings, memory_backend=_MEMORY_BACKEND)
        try:
            result = service.analyze()
            result = attach_narrative(result, load_narrative_generator(settings))
            await service.store(result)
        finally:
            await service.cache.close()

        return {
            "status": "success",
            "run_id": run_id,
            "season": result.season.value,
            "product_count": len(result.metrics),
            "issue_count": len(result.issues),
            "high_priority": result.high_priority_count,
            "stockout_list": len(result.quick_lists.stockout),
            "narrative": result.narrative is not None,
            "ttl_seconds": settings.analysis_cache_ttl_seconds,
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }

    try:
        summary = asyncio.run(_analyze())
    except Exception as exc:  # noqa: BLE001
        logger.error("analysis_job.failed", run_id=run_id, error=str(exc), exc_info=True)
        return {"status": "failed", "run_id": run_id, "error": str(exc)}

    logger.info("analysis_job.completed", **summary)
    return summary


@celery_app.task(
    name="workers.analysis.cleanup_cache",
    bind=True,
    acks_late=True,
)
def cleanup_cache(self):
    """Sweep expired cache entries."""
    run_id = self.request.id or "manual"

    async def _cleanup() -> int:
        from cache.store import create_cache_store
        from core.config import get_settings

        store = create_cache_store(get_settings(), memory_backend=_MEMORY_BACKEND)
        try:
            return await store.cleanup()
        finally:
            await store.close()

    try:
        deleted = asyncio.run(_cleanup())
    except Exception as exc:  # noqa: BLE001
        logger.error("cache_cleanup_job.failed", run_id=run_id, error=str(exc), exc_info=True)
        return {"status": "failed", "run_id": run_id, "error": str(exc)}

    return {"status": "success", "run_id": run_id, "deleted": deleted}
