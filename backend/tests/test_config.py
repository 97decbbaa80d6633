import pytest

from core import config as config_module


def _reset_settings_cache():
    config_module.get_settings.cache_clear()


def test_non_local_debug_mode_is_blocked(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("DEBUG", "true")
    _reset_settings_cache()

    with pytest.raises(ValueError, match="debug=true"):
        config_module.get_settings()


def test_unknown_cache_backend_is_blocked(monkeypatch):
    monkeypatch.setenv("CACHE_BACKEND", "memcached")
    _reset_settings_cache()

    with pytest.raises(ValueError, match="Unknown cache_backend"):
        config_module.get_settings()


def test_local_allows_debug(monkeypatch):
    monkeypatch.setenv("APP_ENV", "local")
    monkeypatch.setenv("DEBUG", "true")
    _reset_settings_cache()

    settings = config_module.get_settings()
    assert settings.debug is True


def test_thresholds_from_environment(monkeypatch):
    monkeypatch.setenv("STOCKOUT_THRESHOLD_DAYS", "10")
    monkeypatch.setenv("ANALYSIS_CACHE_TTL_SECONDS", "3600")
    _reset_settings_cache()

    settings = config_module.get_settings()
    assert settings.stockout_threshold_days == 10
    assert settings.analysis_cache_ttl_seconds == 3600
    assert settings.overstock_threshold_days == 120
