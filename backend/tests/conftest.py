"""
Test Configuration — Fixtures for product snapshots, clocks and caches.

Everything runs in-process: the memory cache backend stands in for Redis
and clocks are injected so TTL behaviour is exact.
"""

from datetime import datetime, timedelta, timezone

import pytest

from cache.store import CacheStore, MemoryCacheBackend
from core import config as config_module
from inventory.models import ProductRecord

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock for TTL tests."""

    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def build_product(**overrides) -> ProductRecord:
    data = {
        "product_id": "p-1",
        "sku": "SKU-1",
        "name": "Test Product",
        "category": "Artwork",
        "location": {"primary": "gallery"},
        "stock_on_hand": 50,
        "daily_demand_base": 1.0,
        "lead_time_days": 7,
        "unit_cost": 10.0,
        "unit_price": 25.0,
    }
    data.update(overrides)
    return ProductRecord.model_validate(data)


@pytest.fixture
def make_product():
    """Factory for valid ProductRecords with overridable fields."""
    return build_product


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_backend():
    return MemoryCacheBackend()


@pytest.fixture
def cache(memory_backend, clock):
    return CacheStore(memory_backend, default_ttl=60, clock=clock)


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    config_module.get_settings.cache_clear()
    yield
    config_module.get_settings.cache_clear()
