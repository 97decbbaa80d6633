"""
Inventory Data Model — product snapshot records and derived entities.

ProductRecord is the ingestion boundary: every row coming from a product
source is validated here (pydantic) before any metric is computed.
ComputedMetrics and CriticalIssue are derived, immutable, and always
regenerated from a snapshot; they are never persisted on their own.
"""

from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator

from core.errors import ProductValidationError

# ── Sentinels ─────────────────────────────────────────────────────────────
# Real coverage / turnover figures are never negative.

COVERAGE_NO_DEMAND = -1  # seasonal demand is zero
TURNOVER_NO_DEMAND = -1.0  # stock on hand but seasonal demand is zero
TURNOVER_NO_STOCK = -2.0  # nothing on hand


# ── Enumerations ──────────────────────────────────────────────────────────


class Season(str, Enum):
    HIGH = "high"
    LOW = "low"


class ABCClass(str, Enum):
    """Revenue-contribution tier."""

    A = "A"
    B = "B"
    C = "C"


class XYZClass(str, Enum):
    """Demand-variability tier."""

    X = "X"  # stable
    Y = "Y"  # variable
    Z = "Z"  # erratic


class IssueReason(str, Enum):
    STOCKOUT_RISK = "stockout_risk"
    BELOW_REORDER_POINT = "below_reorder_point"
    OVERSTOCK = "overstock"
    SLOW_TURNOVER = "slow_turnover"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


PRIORITY_RANK = {
    Priority.HIGH: 0,
    Priority.MEDIUM: 1,
    Priority.LOW: 2,
}


@dataclass(frozen=True)
class SeasonProfile:
    """Service level and demand multiplier applied during a season."""

    season: Season
    service_level: float
    z_score: float
    demand_multiplier: float


# ── Product snapshot (ingestion boundary) ─────────────────────────────────


class Location(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    primary: str = Field(min_length=1)
    secondary: str | None = None


class ProductRecord(BaseModel):
    """One product as delivered by a product source."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    product_id: str = Field(min_length=1)
    sku: str = Field(min_length=1)
    name: str
    category: str
    location: Location
    stock_on_hand: int = Field(ge=0)
    daily_demand_base: float = Field(ge=0, allow_inf_nan=False)
    lead_time_days: int = Field(gt=0)
    unit_cost: float = Field(ge=0, allow_inf_nan=False)
    unit_price: float = Field(gt=0, allow_inf_nan=False)
    abc_class: ABCClass | None = None
    xyz_class: XYZClass | None = None
    # Optional daily demand observations, used only by computed XYZ classification
    demand_history: tuple[float, ...] = ()

    @field_validator("location", mode="before")
    @classmethod
    def _location_from_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"primary": value}
        return value

    @field_validator("unit_price")
    @classmethod
    def _price_above_cost(cls, value: float, info: ValidationInfo) -> float:
        cost = info.data.get("unit_cost")
        if cost is not None and value <= cost:
            raise ValueError(f"must be greater than unit_cost ({cost})")
        return value

    @field_validator("demand_history")
    @classmethod
    def _history_non_negative(cls, value: tuple[float, ...]) -> tuple[float, ...]:
        if any(v < 0 for v in value):
            raise ValueError("demand observations must be non-negative")
        return value


def parse_product(raw: Mapping[str, Any]) -> ProductRecord:
    """
    Validate one raw product row.

    Raises:
        ProductValidationError naming the first offending field.
    """
    try:
        return ProductRecord.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "record"
        sku = raw.get("sku") if isinstance(raw, Mapping) else None
        raise ProductValidationError(field, first["msg"], sku=sku) from exc


def parse_snapshot(rows: Iterable[Mapping[str, Any] | ProductRecord]) -> list[ProductRecord]:
    """Validate a full snapshot. Duplicate product ids are rejected."""
    products: list[ProductRecord] = []
    seen: set[str] = set()
    for row in rows:
        product = row if isinstance(row, ProductRecord) else parse_product(row)
        if product.product_id in seen:
            raise ProductValidationError("product_id", f"duplicate id '{product.product_id}'", sku=product.sku)
        seen.add(product.product_id)
        products.append(product)
    return products


# ── Derived entities ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class ComputedMetrics:
    """Replenishment figures derived for one product in one season."""

    product: ProductRecord
    seasonal_demand: float
    demand_during_lead_time: float
    demand_std_dev: float
    safety_stock: int
    reorder_point: int
    target_stock: int
    suggested_order_qty: int
    coverage_days: int
    turnover_months: float
    gross_margin: float
    abc_class: ABCClass | None = None
    xyz_class: XYZClass | None = None

    @property
    def sku(self) -> str:
        return self.product.sku

    @property
    def stock_on_hand(self) -> int:
        return self.product.stock_on_hand

    @property
    def has_demand(self) -> bool:
        return self.coverage_days != COVERAGE_NO_DEMAND

    @property
    def has_turnover(self) -> bool:
        return self.turnover_months >= 0

    def to_dict(self) -> dict[str, Any]:
        data = self.product.model_dump(mode="json", exclude={"abc_class", "xyz_class", "demand_history"})
        data.update(
            seasonal_demand=self.seasonal_demand,
            demand_during_lead_time=self.demand_during_lead_time,
            demand_std_dev=self.demand_std_dev,
            safety_stock=self.safety_stock,
            reorder_point=self.reorder_point,
            target_stock=self.target_stock,
            suggested_order_qty=self.suggested_order_qty,
            coverage_days=self.coverage_days,
            turnover_months=self.turnover_months,
            gross_margin=self.gross_margin,
            abc_class=self.abc_class.value if self.abc_class else None,
            xyz_class=self.xyz_class.value if self.xyz_class else None,
        )
        return data


@dataclass(frozen=True)
class CriticalIssue:
    """A rule match for one product, with a rationale citing the figures."""

    sku: str
    name: str
    category: str
    location: str
    reason: IssueReason
    priority: Priority
    stock_on_hand: int
    rationale: str
    coverage_days: int | None = None
    suggested_order_qty: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["reason"] = self.reason.value
        data["priority"] = self.priority.value
        return data
