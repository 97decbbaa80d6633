"""
Tests for the scheduled analysis and cache-cleanup tasks.
"""

from datetime import datetime, timedelta, timezone

import pytest

from cache.store import CacheEntry, MemoryCacheBackend
from core.config import Settings
from workers import analysis as analysis_worker
from workers.analysis import analyze_inventory, cleanup_cache, load_narrative_generator
from workers.celery_app import celery_app


class StubGenerator:
    def generate(self, result):
        return f"{result.high_priority_count} urgent issues"


STUB_FACTORY = f"{__name__}:StubGenerator"


@pytest.fixture
def backend(monkeypatch):
    backend = MemoryCacheBackend()
    monkeypatch.setattr(analysis_worker, "_MEMORY_BACKEND", backend)
    return backend


@pytest.fixture
def settings(monkeypatch):
    settings = Settings(cache_backend="memory", product_source="fixture", narrative_enabled=False)
    monkeypatch.setattr("core.config.get_settings", lambda: settings)
    return settings


def test_analyze_inventory_caches_payload(settings, backend):
    result = analyze_inventory.run()
    assert result["status"] == "success"
    assert result["run_id"] == "manual"
    assert result["product_count"] == 3
    assert result["high_priority"] >= 2
    assert result["narrative"] is False
    assert result["ttl_seconds"] == 21600
    assert len(backend) == 1


def test_narrative_attached_when_enabled(settings, backend, monkeypatch):
    monkeypatch.setattr(settings, "narrative_enabled", True)
    monkeypatch.setattr(settings, "narrative_generator", STUB_FACTORY)
    result = analyze_inventory.run()
    assert result["status"] == "success"
    assert result["narrative"] is True


def test_narrative_ignored_when_disabled(settings, backend, monkeypatch):
    monkeypatch.setattr(settings, "narrative_generator", STUB_FACTORY)
    assert analyze_inventory.run()["narrative"] is False


def test_narrative_generator_resolved_per_run():
    enabled = Settings(narrative_enabled=True, narrative_generator=STUB_FACTORY)
    first = load_narrative_generator(enabled)
    second = load_narrative_generator(enabled)
    assert isinstance(first, StubGenerator)
    assert first is not second
    assert load_narrative_generator(Settings(narrative_enabled=True)) is None
    assert load_narrative_generator(Settings(narrative_generator=STUB_FACTORY)) is None


def test_unresolvable_narrative_factory_fails_the_run(settings, backend, monkeypatch):
    monkeypatch.setattr(settings, "narrative_enabled", True)
    monkeypatch.setattr(settings, "narrative_generator", "no_such_module:build")
    result = analyze_inventory.run()
    assert result["status"] == "failed"
    assert len(backend) == 0


def test_failed_run_is_reported_not_raised(backend, monkeypatch):
    monkeypatch.setattr("core.config.get_settings", lambda: Settings(product_source="square"))
    result = analyze_inventory.run()
    assert result["status"] == "failed"
    assert "square" in result["error"]
    assert len(backend) == 0


def test_cleanup_cache_removes_expired(settings, backend):
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    backend._entries["stale"] = CacheEntry(
        key="stale", value={}, expires_at=past, created_at=past - timedelta(hours=6), updated_at=past
    )
    analyze_inventory.run()

    result = cleanup_cache.run()
    assert result == {"status": "success", "run_id": "manual", "deleted": 1}
    assert len(backend) == 1


def test_beat_schedule():
    schedule = celery_app.conf.beat_schedule
    assert schedule["analyze-inventory-6h"]["task"] == "workers.analysis.analyze_inventory"
    assert schedule["cleanup-result-cache-hourly"]["task"] == "workers.analysis.cleanup_cache"
    assert celery_app.conf.task_routes["workers.analysis.*"] == {"queue": "analytics"}
