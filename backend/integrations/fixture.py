"""
Fixture product source — the gallery's reference catalog.

Stands in for the live POS feed in development and demos. Labels are
pre-assigned, so the supplied-classification path is exercised.
"""

from typing import Any

from integrations.base import SourceType, StaticProductSource, register_source

FIXTURE_PRODUCTS: tuple[dict[str, Any], ...] = (
    {
        "product_id": "1",
        "sku": "ART-001",
        "name": "Ocean Painting",
        "category": "Artwork",
        "location": {"primary": "gallery"},
        "stock_on_hand": 3,
        "daily_demand_base": 0.5,
        "lead_time_days": 14,
        "unit_cost": 500,
        "unit_price": 1200,
        "abc_class": "A",
        "xyz_class": "X",
    },
    {
        "product_id": "2",
        "sku": "JOY-045",
        "name": "Turquoise Silver Necklace",
        "category": "Jewelry",
        "location": {"primary": "gallery"},
        "stock_on_hand": 8,
        "daily_demand_base": 1.2,
        "lead_time_days": 7,
        "unit_cost": 300,
        "unit_price": 750,
        "abc_class": "A",
        "xyz_class": "Y",
    },
    {
        "product_id": "3",
        "sku": "SOU-112",
        "name": "Cabo Magnet",
        "category": "Art Souvenirs",
        "location": {"primary": "warehouse"},
        "stock_on_hand": 150,
        "daily_demand_base": 3.0,
        "lead_time_days": 21,
        "unit_cost": 15,
        "unit_price": 45,
        "abc_class": "B",
        "xyz_class": "X",
    },
)


@register_source
class FixtureProductSource(StaticProductSource):
    def __init__(self, config: dict[str, Any] | None = None):
        super().__init__(rows=FIXTURE_PRODUCTS, config=config)

    @property
    def source_type(self) -> SourceType:
        return SourceType.FIXTURE
