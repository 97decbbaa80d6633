"""
ShelfSignal Backend Configuration

Uses pydantic-settings for type-safe environment variable loading.
The analytics core never reads these settings directly: callers build
explicit config objects (see analytics.orchestrator.AnalysisConfig)
and pass them through constructors.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

CACHE_BACKENDS = ("memory", "redis")

# Find .env file: check CWD first, then parent (project root)
_env_file = Path(".env")
if not _env_file.exists():
    _parent_env = Path(__file__).resolve().parent.parent.parent / ".env"
    if _parent_env.exists():
        _env_file = _parent_env


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    app_name: str = "ShelfSignal"
    app_version: str = "1.0.0"
    app_env: str = "local"
    debug: bool = False

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # ── Result cache ─────────────────────────────────────────────────
    cache_backend: str = "memory"
    cache_key_prefix: str = "shelfsignal:cache"
    analysis_cache_key: str = "inventory-analysis"
    analysis_cache_ttl_seconds: int = 21600  # 6 hours

    # ── Analysis ─────────────────────────────────────────────────────
    product_source: str = "fixture"
    analysis_max_workers: int = 4
    quick_list_size: int = 10

    # Issue detection thresholds
    stockout_threshold_days: int = 7
    overstock_threshold_days: int = 120
    slow_turnover_threshold_months: float = 6.0
    low_stock_coverage_days: int = 14

    # Classification: cumulative revenue share (ABC), coefficient of variation (XYZ)
    abc_a_threshold: float = 0.80
    abc_b_threshold: float = 0.95
    xyz_x_threshold: float = 0.5
    xyz_y_threshold: float = 1.0

    # ── Scheduling / narrative ───────────────────────────────────────
    schedule_timezone: str = "America/Mazatlan"
    narrative_enabled: bool = False
    # Dotted path to a zero-argument factory returning a NarrativeGenerator, e.g. "mypkg.llm:build_generator"
    narrative_generator: str = ""

    model_config = {
        "env_file": str(_env_file),
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    settings = Settings()
    _enforce_guardrails(settings)
    return settings


def _enforce_guardrails(settings: Settings) -> None:
    if settings.cache_backend not in CACHE_BACKENDS:
        raise ValueError(f"Unknown cache_backend '{settings.cache_backend}'. Known: {list(CACHE_BACKENDS)}")

    env = settings.app_env.strip().lower()
    is_local = env in {"", "local", "dev", "development", "test"}
    if is_local:
        return

    if settings.debug:
        raise ValueError("Refusing to start with debug=true outside local/dev/test")
