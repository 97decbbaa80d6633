"""
Demand Model — Seasonal Reorder Point Calculation.

Turns one product snapshot plus the active season into replenishment
figures. Pure arithmetic, no I/O, safe to evaluate products in parallel.

Algorithm:
  Seasonal Demand = Base Daily Demand × Season Multiplier
  DLT             = Seasonal Demand × Lead Time
  σ (demand)      = Seasonal Demand × Variability Factor
  Safety Stock    = ⌈Z × σ × √(Lead Time)⌉
  ROP             = ⌈DLT + Safety Stock⌉
  Target Stock    = ⌈Seasonal Demand × Review Period + Safety Stock⌉
  Suggested Qty   = max(0, Target Stock − Stock On Hand)
  Coverage Days   = round(Stock On Hand / Seasonal Demand)
  Turnover Months = Stock On Hand / (Seasonal Demand × 30)
  Gross Margin    = (Price − Cost) / Price

Zero demand or zero stock never divides: coverage and turnover fall back
to the sentinels defined in inventory.models.
"""

import math

from inventory.models import (
    COVERAGE_NO_DEMAND,
    TURNOVER_NO_DEMAND,
    TURNOVER_NO_STOCK,
    ComputedMetrics,
    ProductRecord,
    SeasonProfile,
)

# Demand std dev assumed as a share of seasonal demand (30% variability)
VARIABILITY_FACTOR = 0.3

# Target stock covers two weeks of seasonal demand on top of safety stock
REVIEW_PERIOD_DAYS = 14

DAYS_PER_MONTH = 30

# Decimal places kept before ceiling, so float noise does not add a whole unit
_CEIL_PRECISION = 6


def _ceil(value: float) -> int:
    return math.ceil(round(value, _CEIL_PRECISION))


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_safety_stock(z_score: float, demand_std_dev: float, lead_time_days: float) -> int:
    """Safety Stock = ⌈Z × σ × √LT⌉, never negative."""
    if demand_std_dev <= 0 or lead_time_days <= 0:
        return 0
    return max(0, _ceil(z_score * demand_std_dev * math.sqrt(lead_time_days)))


def calculate_reorder_point(demand_during_lead_time: float, safety_stock: int) -> int:
    """ROP = ⌈DLT + SS⌉, never below DLT."""
    # Trimming noise must not pull the ROP under lead-time demand
    return max(_ceil(demand_during_lead_time + safety_stock), math.ceil(demand_during_lead_time))


def calculate_coverage_days(stock_on_hand: int, seasonal_demand: float) -> int:
    """Days the current stock lasts; COVERAGE_NO_DEMAND when nothing sells."""
    if seasonal_demand <= 0:
        return COVERAGE_NO_DEMAND
    return _round_half_up(stock_on_hand / seasonal_demand)


def calculate_turnover_months(stock_on_hand: int, seasonal_demand: float) -> float:
    """Months of stock on hand, rounded to one decimal."""
    if stock_on_hand <= 0:
        return TURNOVER_NO_STOCK
    if seasonal_demand <= 0:
        return TURNOVER_NO_DEMAND
    return round(stock_on_hand / (seasonal_demand * DAYS_PER_MONTH), 1)


def calculate_gross_margin(unit_cost: float, unit_price: float) -> float:
    return round((unit_price - unit_cost) / unit_price, 2)


class DemandModel:
    """Compute seasonal replenishment metrics for a single product."""

    def __init__(
        self,
        variability_factor: float = VARIABILITY_FACTOR,
        review_period_days: int = REVIEW_PERIOD_DAYS,
    ):
        if variability_factor < 0:
            raise ValueError("variability_factor must be non-negative")
        if review_period_days <= 0:
            raise ValueError("review_period_days must be positive")
        self.variability_factor = variability_factor
        self.review_period_days = review_period_days

    def compute(self, product: ProductRecord, profile: SeasonProfile) -> ComputedMetrics:
        """
        Derive ComputedMetrics for {product} under {profile}.

        Classification labels are carried over as supplied; the orchestrator
        fills missing ones once every product has been evaluated.
        """
        seasonal_demand = product.daily_demand_base * profile.demand_multiplier
        dlt = seasonal_demand * product.lead_time_days
        std_dev = seasonal_demand * self.variability_factor

        safety_stock = calculate_safety_stock(profile.z_score, std_dev, product.lead_time_days)
        reorder_point = calculate_reorder_point(dlt, safety_stock)
        target_stock = _ceil(seasonal_demand * self.review_period_days + safety_stock)
        suggested_qty = max(0, target_stock - product.stock_on_hand)

        return ComputedMetrics(
            product=product,
            seasonal_demand=seasonal_demand,
            demand_during_lead_time=dlt,
            demand_std_dev=std_dev,
            safety_stock=safety_stock,
            reorder_point=reorder_point,
            target_stock=target_stock,
            suggested_order_qty=suggested_qty,
            coverage_days=calculate_coverage_days(product.stock_on_hand, seasonal_demand),
            turnover_months=calculate_turnover_months(product.stock_on_hand, seasonal_demand),
            gross_margin=calculate_gross_margin(product.unit_cost, product.unit_price),
            abc_class=product.abc_class,
            xyz_class=product.xyz_class,
        )
