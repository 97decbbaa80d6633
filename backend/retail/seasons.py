"""
Retail Seasons — map a calendar date to the demand season.

The store runs on a two-season year:
  - High: October through June (tourist season)
  - Low:  July through September

Each season carries the service level the replenishment math targets
and the multiplier applied to base daily demand.

Usage:
    from retail.seasons import resolve_season, get_season_profile

    season = resolve_season(date(2026, 8, 1))   # → Season.LOW
    profile = get_season_profile(season)         # → z=1.81, multiplier=0.80
"""

from datetime import date, datetime

from inventory.models import Season, SeasonProfile

HIGH_SEASON_MONTHS = frozenset({10, 11, 12, 1, 2, 3, 4, 5, 6})
LOW_SEASON_MONTHS = frozenset({7, 8, 9})

SEASON_PROFILES: dict[Season, SeasonProfile] = {
    # 97% service level
    Season.HIGH: SeasonProfile(season=Season.HIGH, service_level=0.97, z_score=2.17, demand_multiplier=1.25),
    # 93% service level
    Season.LOW: SeasonProfile(season=Season.LOW, service_level=0.93, z_score=1.81, demand_multiplier=0.80),
}


def resolve_season(on: date | datetime) -> Season:
    """Season in effect on a given date."""
    if on.month in LOW_SEASON_MONTHS:
        return Season.LOW
    return Season.HIGH


def get_season_profile(season: Season | str) -> SeasonProfile:
    """
    Look up the profile for a season.

    Raises:
        ValueError if the season is unknown.
    """
    try:
        return SEASON_PROFILES[Season(season)]
    except ValueError:
        raise ValueError(f"Unknown season '{season}'. Known: {[s.value for s in Season]}") from None


def season_parameters() -> dict[str, dict[str, float]]:
    """Service levels and multipliers for every season, keyed by season value."""
    return {
        "service_level": {s.value: p.service_level for s, p in SEASON_PROFILES.items()},
        "demand_multiplier": {s.value: p.demand_multiplier for s, p in SEASON_PROFILES.items()},
    }
