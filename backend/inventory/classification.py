"""
Classification Engine — ABC (revenue) and XYZ (variability) tiers.

ABC: products ranked by expected revenue (unit price × seasonal demand),
     descending. A product is placed by the cumulative revenue share of
     the products ranked above it, so the top seller is always A.
XYZ: coefficient of variation (σ / μ) of the product's demand history.
     Without at least two observations the demand model's assumed
     variability factor stands in for the CV.

Supplied labels on the ProductRecord are trusted by default; each label
is filled independently, so a record carrying only abc_class still gets
a computed xyz_class.
"""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, replace

import numpy as np
import structlog

from inventory.demand import VARIABILITY_FACTOR
from inventory.models import ABCClass, ComputedMetrics, XYZClass

logger = structlog.get_logger()


@dataclass(frozen=True)
class ClassificationThresholds:
    # Cumulative revenue share boundaries (80 / 15 / 5 split)
    abc_a: float = 0.80
    abc_b: float = 0.95
    # Coefficient of variation bands
    xyz_x: float = 0.5
    xyz_y: float = 1.0

    def __post_init__(self):
        if not 0 < self.abc_a <= self.abc_b <= 1:
            raise ValueError("ABC thresholds must satisfy 0 < a <= b <= 1")
        if not 0 <= self.xyz_x <= self.xyz_y:
            raise ValueError("XYZ thresholds must satisfy 0 <= x <= y")


def assign_abc(cumulative_share_before: float, thresholds: ClassificationThresholds) -> ABCClass:
    if cumulative_share_before < thresholds.abc_a:
        return ABCClass.A
    if cumulative_share_before < thresholds.abc_b:
        return ABCClass.B
    return ABCClass.C


def assign_xyz(cv: float, thresholds: ClassificationThresholds) -> XYZClass:
    if cv < thresholds.xyz_x:
        return XYZClass.X
    if cv < thresholds.xyz_y:
        return XYZClass.Y
    return XYZClass.Z


def coefficient_of_variation(history: Sequence[float], fallback: float = VARIABILITY_FACTOR) -> float:
    """σ / μ of a demand series (population σ). Zero mean is maximally erratic."""
    if len(history) < 2:
        return fallback
    values = np.asarray(history, dtype=float)
    mean = float(values.mean())
    if mean <= 0:
        return float("inf")
    return float(values.std() / mean)


class ClassificationEngine:
    """Fill ABC/XYZ labels across a complete set of computed metrics."""

    def __init__(
        self,
        thresholds: ClassificationThresholds | None = None,
        trust_supplied: bool = True,
        variability_fallback: float = VARIABILITY_FACTOR,
    ):
        self.thresholds = thresholds or ClassificationThresholds()
        self.trust_supplied = trust_supplied
        self.variability_fallback = variability_fallback

    def compute_abc(self, metrics: Sequence[ComputedMetrics]) -> dict[str, ABCClass]:
        """ABC tier per product_id from expected revenue across the whole set."""
        revenue = [(m.product.product_id, m.product.unit_price * m.seasonal_demand) for m in metrics]
        total = sum(r for _, r in revenue)
        if total <= 0:
            return {pid: ABCClass.C for pid, _ in revenue}

        # sorted() is stable, ties keep snapshot order
        ranked = sorted(revenue, key=lambda item: item[1], reverse=True)
        labels: dict[str, ABCClass] = {}
        cumulative = 0.0
        for pid, value in ranked:
            labels[pid] = assign_abc(cumulative / total, self.thresholds)
            cumulative += value
        return labels

    def compute_xyz(self, metrics: ComputedMetrics) -> XYZClass:
        cv = coefficient_of_variation(metrics.product.demand_history, self.variability_fallback)
        return assign_xyz(cv, self.thresholds)

    def classify(self, metrics: Sequence[ComputedMetrics]) -> list[ComputedMetrics]:
        """
        Return metrics with both labels set, in input order.

        Needs the complete set: ABC ranks every product against the others.
        """
        computed_abc = self.compute_abc(metrics)
        classified = []
        filled = 0
        for m in metrics:
            abc = m.abc_class if self.trust_supplied and m.abc_class else computed_abc[m.product.product_id]
            xyz = m.xyz_class if self.trust_supplied and m.xyz_class else self.compute_xyz(m)
            if abc is not m.abc_class or xyz is not m.xyz_class:
                filled += 1
            classified.append(replace(m, abc_class=abc, xyz_class=xyz))

        logger.debug("classification.completed", products=len(metrics), labels_computed=filled)
        return classified


def abc_xyz_matrix(metrics: Sequence[ComputedMetrics]) -> dict[str, int]:
    """
    Counts per combined class: AX, AY, AZ, BX, ... CZ.

    Every combination is present, unclassified metrics are ignored.
    """
    counts = Counter(
        f"{m.abc_class.value}{m.xyz_class.value}" for m in metrics if m.abc_class and m.xyz_class
    )
    return {f"{abc.value}{xyz.value}": counts.get(f"{abc.value}{xyz.value}", 0) for abc in ABCClass for xyz in XYZClass}
