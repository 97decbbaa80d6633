"""
Product Source — Abstract Base Class

Every product feed (live POS connector, fixture, file export) implements
this interface so the analytics core stays independent of data origin.
A source returns one validated snapshot per call; the orchestrator
treats the fetch as a synchronous precondition.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

import structlog

from inventory.models import ProductRecord, parse_snapshot

logger = structlog.get_logger()


class SourceType(str, Enum):
    """Registered product source kinds."""

    FIXTURE = "fixture"  # bundled reference catalog
    STATIC = "static"  # rows handed in by the caller


class ProductSource(ABC):
    """
    Base class for all product snapshot providers.

    Lifecycle:
        1. __init__(config)     — load credentials / rows
        2. fetch_snapshot()     — return every active product, validated
    """

    def __init__(self, config: dict[str, Any] | None = None):
        self.config = config or {}
        self.logger = logger.bind(source=self.source_type.value)

    @property
    @abstractmethod
    def source_type(self) -> SourceType:
        """Return the source kind this class provides."""
        ...

    @abstractmethod
    def fetch_snapshot(self) -> list[ProductRecord]:
        """
        Return the current product snapshot.

        Raises:
            ProductValidationError if any row is malformed.
        """
        ...


class StaticProductSource(ProductSource):
    """Serve a fixed list of raw rows, validated on every fetch."""

    def __init__(self, rows: Iterable[Mapping[str, Any]] | None = None, config: dict[str, Any] | None = None):
        super().__init__(config)
        self.rows = list(rows if rows is not None else self.config.get("rows", []))

    @property
    def source_type(self) -> SourceType:
        return SourceType.STATIC

    def fetch_snapshot(self) -> list[ProductRecord]:
        products = parse_snapshot(self.rows)
        self.logger.info("source.snapshot_fetched", product_count=len(products))
        return products


# ── Source registry ───────────────────────────────────────────────────────

_SOURCE_REGISTRY: dict[SourceType, type[ProductSource]] = {}


def register_source(source_cls: type[ProductSource]):
    """Decorator: register a source class for its source type."""
    _SOURCE_REGISTRY[source_cls.source_type.fget(None)] = source_cls  # type: ignore
    return source_cls


register_source(StaticProductSource)


def get_product_source(source_type: SourceType | str, config: dict[str, Any] | None = None) -> ProductSource:
    """Factory: return the right source instance for the given type."""
    try:
        kind = SourceType(source_type)
    except ValueError:
        raise ValueError(f"Unknown product source: {source_type}") from None
    source_cls = _SOURCE_REGISTRY.get(kind)
    if source_cls is None:
        raise ValueError(f"No product source registered for type: {kind.value}")
    return source_cls(config=config)
