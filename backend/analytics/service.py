"""
Inventory Status Service — cache-aside access to the latest analysis.

Thin layer between callers (HTTP handlers, scheduled jobs, CLIs) and the
core: read the cached payload, recompute on miss or expiry, and store the
fresh payload. A failed recompute raises before anything is cached, so a
partial result is never stored.
"""

from typing import Any

import structlog

from analytics.orchestrator import AnalysisConfig, AnalysisResult, AnalyticsOrchestrator
from cache.store import CacheStore, Clock, MemoryCacheBackend, create_cache_store, utcnow
from integrations.base import ProductSource, get_product_source
from inventory.models import IssueReason
from retail.seasons import resolve_season

logger = structlog.get_logger()

LOW_STOCK_REASONS = (IssueReason.STOCKOUT_RISK.value, IssueReason.BELOW_REORDER_POINT.value)


class InventoryStatusService:
    def __init__(
        self,
        cache: CacheStore,
        source: ProductSource,
        orchestrator: AnalyticsOrchestrator,
        cache_key: str = "inventory-analysis",
        ttl_seconds: int = 21600,
        low_stock_coverage_days: int = 14,
        clock: Clock = utcnow,
    ):
        self.cache = cache
        self.source = source
        self.orchestrator = orchestrator
        self.cache_key = cache_key
        self.ttl_seconds = ttl_seconds
        self.low_stock_coverage_days = low_stock_coverage_days
        self.clock = clock

    def analyze(self) -> AnalysisResult:
        """Fetch a snapshot and run the full analysis for the current season."""
        now = self.clock()
        products = self.source.fetch_snapshot()
        return self.orchestrator.compute_analysis(products, resolve_season(now), now)

    async def store(self, result: AnalysisResult) -> dict[str, Any]:
        payload = result.to_dict()
        await self.cache.set(self.cache_key, payload, ttl=self.ttl_seconds)
        return payload

    async def get_status(self) -> tuple[dict[str, Any], bool]:
        """
        Latest analysis payload and whether it came from the cache.

        Raises:
            StorageError if the fresh payload cannot be cached.
        """
        payload = await self.cache.get(self.cache_key)
        if payload is not None:
            return payload, True

        logger.info("status.cache_miss", key=self.cache_key)
        return await self.store(self.analyze()), False

    async def refresh(self) -> dict[str, Any]:
        """Drop the cached analysis and recompute it."""
        logger.info("status.refresh", key=self.cache_key)
        await self.cache.delete(self.cache_key)
        return await self.store(self.analyze())

    async def low_stock(self) -> dict[str, Any]:
        """
        Products under their reorder point or with less than
        {low_stock_coverage_days} of coverage, plus related issues.
        """
        payload, _ = await self.get_status()
        products = [
            m
            for m in payload["metrics"]
            if m["stock_on_hand"] < m["reorder_point"] or 0 <= m["coverage_days"] < self.low_stock_coverage_days
        ]
        issues = [i for i in payload["issues"] if i["reason"] in LOW_STOCK_REASONS]
        return {"total": len(products), "products": products, "issues": issues}


def build_status_service(
    settings,
    clock: Clock = utcnow,
    memory_backend: MemoryCacheBackend | None = None,
) -> InventoryStatusService:
    """Wire a service from settings: cache backend, product source, thresholds."""
    return InventoryStatusService(
        cache=create_cache_store(settings, clock=clock, memory_backend=memory_backend),
        source=get_product_source(settings.product_source),
        orchestrator=AnalyticsOrchestrator(AnalysisConfig.from_settings(settings)),
        cache_key=settings.analysis_cache_key,
        ttl_seconds=settings.analysis_cache_ttl_seconds,
        low_stock_coverage_days=settings.low_stock_coverage_days,
        clock=clock,
    )
