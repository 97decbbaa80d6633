"""
Issue Detector — Rule-based critical issue detection and prioritization.

Each rule is an independent predicate over one product's ComputedMetrics;
a product may trigger several. Matches are sorted by priority rank
(high < medium < low). Python's sort is stable, so ties keep product
order and, within a product, rule order.

Issue Types:
  - stockout_risk: Coverage below threshold for a class A product (high)
  - below_reorder_point: Stock under ROP (high for class A, medium otherwise)
  - overstock: Coverage above threshold (low)
  - slow_turnover: Months of stock above threshold (medium)
"""

from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import structlog

from inventory.models import (
    PRIORITY_RANK,
    ABCClass,
    ComputedMetrics,
    CriticalIssue,
    IssueReason,
    Priority,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class DetectionThresholds:
    stockout_days: int = 7
    overstock_days: int = 120
    slow_turnover_months: float = 6.0


def _issue(
    metrics: ComputedMetrics,
    reason: IssueReason,
    priority: Priority,
    rationale: str,
    coverage_days: int | None = None,
    suggested_order_qty: int | None = None,
) -> CriticalIssue:
    product = metrics.product
    return CriticalIssue(
        sku=product.sku,
        name=product.name,
        category=product.category,
        location=product.location.primary,
        reason=reason,
        priority=priority,
        stock_on_hand=product.stock_on_hand,
        rationale=rationale,
        coverage_days=coverage_days,
        suggested_order_qty=suggested_order_qty,
    )


# ──────────────────────────────────────────────────────────────────────────
# Detection Rules
# ──────────────────────────────────────────────────────────────────────────


def detect_stockout_risk(m: ComputedMetrics, thresholds: DetectionThresholds) -> CriticalIssue | None:
    if not m.has_demand or m.abc_class is not ABCClass.A:
        return None
    if m.coverage_days >= thresholds.stockout_days:
        return None
    return _issue(
        m,
        IssueReason.STOCKOUT_RISK,
        Priority.HIGH,
        (
            f"Critical stock: only {m.coverage_days} days of coverage "
            f"(threshold {thresholds.stockout_days}). Replenish urgently, "
            f"suggested order {m.suggested_order_qty} units."
        ),
        coverage_days=m.coverage_days,
        suggested_order_qty=m.suggested_order_qty,
    )


def detect_below_reorder_point(m: ComputedMetrics, thresholds: DetectionThresholds) -> CriticalIssue | None:
    if m.stock_on_hand >= m.reorder_point:
        return None
    priority = Priority.HIGH if m.abc_class is ABCClass.A else Priority.MEDIUM
    return _issue(
        m,
        IssueReason.BELOW_REORDER_POINT,
        priority,
        (
            f"Stock on hand ({m.stock_on_hand}) is below the reorder point ({m.reorder_point}). "
            f"Order {m.suggested_order_qty} units."
        ),
        suggested_order_qty=m.suggested_order_qty,
    )


def detect_overstock(m: ComputedMetrics, thresholds: DetectionThresholds) -> CriticalIssue | None:
    if not m.has_demand or m.coverage_days <= thresholds.overstock_days:
        return None
    return _issue(
        m,
        IssueReason.OVERSTOCK,
        Priority.LOW,
        (
            f"Overstock: {m.coverage_days} days of coverage "
            f"(threshold {thresholds.overstock_days}). Consider a promotion or bundle."
        ),
        coverage_days=m.coverage_days,
    )


def detect_slow_turnover(m: ComputedMetrics, thresholds: DetectionThresholds) -> CriticalIssue | None:
    if not m.has_turnover or m.turnover_months <= thresholds.slow_turnover_months:
        return None
    return _issue(
        m,
        IssueReason.SLOW_TURNOVER,
        Priority.MEDIUM,
        (
            f"Stock on hand lasts {m.turnover_months} months at current demand "
            f"(threshold {thresholds.slow_turnover_months:g}). Evaluate discontinuing or promoting."
        ),
    )


Rule = Callable[[ComputedMetrics, DetectionThresholds], CriticalIssue | None]

# Evaluation order; ties in priority keep this order
RULES: tuple[Rule, ...] = (
    detect_stockout_risk,
    detect_below_reorder_point,
    detect_overstock,
    detect_slow_turnover,
)


# ──────────────────────────────────────────────────────────────────────────
# Detector
# ──────────────────────────────────────────────────────────────────────────


class IssueDetector:
    """Run every rule over a complete, classified set of metrics."""

    def __init__(self, thresholds: DetectionThresholds | None = None, rules: Sequence[Rule] = RULES):
        self.thresholds = thresholds or DetectionThresholds()
        self.rules = tuple(rules)

    def detect(self, metrics: Sequence[ComputedMetrics]) -> list[CriticalIssue]:
        issues = []
        for m in metrics:
            for rule in self.rules:
                issue = rule(m, self.thresholds)
                if issue is not None:
                    issues.append(issue)

        ordered = sorted(issues, key=lambda issue: PRIORITY_RANK[issue.priority])
        logger.debug(
            "issues.detected",
            products=len(metrics),
            issues=len(ordered),
            high=sum(1 for i in ordered if i.priority is Priority.HIGH),
        )
        return ordered


def count_by_reason(issues: Sequence[CriticalIssue]) -> dict[IssueReason, int]:
    """Issue counts for every reason, zero included."""
    counts = Counter(issue.reason for issue in issues)
    return {reason: counts.get(reason, 0) for reason in IssueReason}
