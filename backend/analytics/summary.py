"""
Summary Builder — executive summary lines and top-N quick-lists.

The executive summary always states the product count and the class A
count; stockout, reorder and overstock lines appear only when the
matching issue count is non-zero.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from alerts.engine import DetectionThresholds, count_by_reason
from inventory.models import ABCClass, ComputedMetrics, CriticalIssue, IssueReason

OVERSTOCK_ACTION = "Promotion or discount"


@dataclass
class QuickLists:
    stockout: list[dict[str, Any]] = field(default_factory=list)
    overstock: list[dict[str, Any]] = field(default_factory=list)
    slow_rotation: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "stockout": list(self.stockout),
            "overstock": list(self.overstock),
            "slow_rotation": list(self.slow_rotation),
        }


class SummaryBuilder:
    def __init__(
        self,
        thresholds: DetectionThresholds | None = None,
        top_n: int = 10,
        class_a_share: float = 0.80,
    ):
        if top_n <= 0:
            raise ValueError("top_n must be positive")
        self.thresholds = thresholds or DetectionThresholds()
        self.top_n = top_n
        # Cumulative revenue share covered by class A, as configured for classification
        self.class_a_share = class_a_share

    def executive_summary(self, metrics: Sequence[ComputedMetrics], issues: Sequence[CriticalIssue]) -> list[str]:
        counts = count_by_reason(issues)
        stockouts = counts[IssueReason.STOCKOUT_RISK]
        reorders = counts[IssueReason.BELOW_REORDER_POINT]
        overstocks = counts[IssueReason.OVERSTOCK]

        lines = [f"Total inventory: {len(metrics)} active products"]
        if stockouts > 0:
            lines.append(
                f"CRITICAL: {stockouts} products at risk of stockout (<{self.thresholds.stockout_days} days)"
            )
        if reorders > 0:
            lines.append(f"{reorders} products require replenishment")
        if overstocks > 0:
            lines.append(f"{overstocks} products overstocked (>{self.thresholds.overstock_days} days)")

        class_a = sum(1 for m in metrics if m.abc_class is ABCClass.A)
        lines.append(f"Class A products ({self.class_a_share:.0%} of revenue): {class_a}")
        return lines

    def quick_lists(self, metrics: Sequence[ComputedMetrics]) -> QuickLists:
        """
        Top-N lists:
          stockout      → coverage below threshold, ascending coverage
          overstock     → coverage above threshold, descending coverage
          slow_rotation → turnover above threshold, descending turnover
        Sentinel coverage/turnover never qualifies.
        """
        with_demand = [m for m in metrics if m.has_demand]

        stockout = sorted(
            (m for m in with_demand if m.coverage_days < self.thresholds.stockout_days),
            key=lambda m: m.coverage_days,
        )
        overstock = sorted(
            (m for m in with_demand if m.coverage_days > self.thresholds.overstock_days),
            key=lambda m: m.coverage_days,
            reverse=True,
        )
        slow = sorted(
            (m for m in metrics if m.has_turnover and m.turnover_months > self.thresholds.slow_turnover_months),
            key=lambda m: m.turnover_months,
            reverse=True,
        )

        return QuickLists(
            stockout=[
                {
                    "sku": m.sku,
                    "name": m.product.name,
                    "coverage_days": m.coverage_days,
                    "stock_on_hand": m.stock_on_hand,
                }
                for m in stockout[: self.top_n]
            ],
            overstock=[
                {
                    "sku": m.sku,
                    "name": m.product.name,
                    "coverage_days": m.coverage_days,
                    "action": OVERSTOCK_ACTION,
                }
                for m in overstock[: self.top_n]
            ],
            slow_rotation=[
                {
                    "sku": m.sku,
                    "name": m.product.name,
                    "turnover_months": m.turnover_months,
                    "days_without_sale": round(m.turnover_months * 30),
                }
                for m in slow[: self.top_n]
            ],
        )
