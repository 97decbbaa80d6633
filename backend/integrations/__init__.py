"""
Product source package.

Pluggable sources feeding product snapshots into the analytics core:
  - Fixture catalog   (development / demos)
  - Static rows       (tests, file imports)

Usage:
    from integrations import get_product_source, SourceType

    source = get_product_source(SourceType.FIXTURE)
    products = source.fetch_snapshot()
"""

from integrations.base import (
    ProductSource,
    SourceType,
    StaticProductSource,
    get_product_source,
    register_source,
)
from integrations.fixture import FIXTURE_PRODUCTS, FixtureProductSource

__all__ = [
    "ProductSource",
    "SourceType",
    "StaticProductSource",
    "get_product_source",
    "register_source",
    "FIXTURE_PRODUCTS",
    "FixtureProductSource",
]
