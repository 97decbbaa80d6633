"""
Analytics Orchestrator — one inventory analysis from one product snapshot.

Pipeline:
  1. DemandModel per product (parallel, thread pool)
  2. Barrier: ClassificationEngine over the complete set
  3. IssueDetector over the classified set
  4. SummaryBuilder: executive summary + quick-lists
  5. Stamp generated_at with the caller-supplied clock value

compute_analysis is a pure function of (products, season, now): nothing is
retained between calls and the same inputs always give the same result.
"""

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog

from alerts.engine import DetectionThresholds, IssueDetector
from analytics.summary import QuickLists, SummaryBuilder
from inventory.classification import ClassificationEngine, ClassificationThresholds, abc_xyz_matrix
from inventory.demand import REVIEW_PERIOD_DAYS, VARIABILITY_FACTOR, DemandModel
from inventory.models import ComputedMetrics, CriticalIssue, Priority, ProductRecord, Season
from retail.seasons import get_season_profile, season_parameters

logger = structlog.get_logger()


@dataclass(frozen=True)
class AnalysisConfig:
    """Explicit knobs for one orchestrator instance."""

    detection: DetectionThresholds = field(default_factory=DetectionThresholds)
    classification: ClassificationThresholds = field(default_factory=ClassificationThresholds)
    trust_supplied_classes: bool = True
    quick_list_size: int = 10
    max_workers: int = 4
    variability_factor: float = VARIABILITY_FACTOR
    review_period_days: int = REVIEW_PERIOD_DAYS

    @classmethod
    def from_settings(cls, settings) -> "AnalysisConfig":
        return cls(
            detection=DetectionThresholds(
                stockout_days=settings.stockout_threshold_days,
                overstock_days=settings.overstock_threshold_days,
                slow_turnover_months=settings.slow_turnover_threshold_months,
            ),
            classification=ClassificationThresholds(
                abc_a=settings.abc_a_threshold,
                abc_b=settings.abc_b_threshold,
                xyz_x=settings.xyz_x_threshold,
                xyz_y=settings.xyz_y_threshold,
            ),
            quick_list_size=settings.quick_list_size,
            max_workers=settings.analysis_max_workers,
        )


@dataclass
class AnalysisResult:
    """Complete inventory analysis for one snapshot."""

    generated_at: datetime
    season: Season
    parameters: dict[str, dict[str, float]]
    metrics: list[ComputedMetrics]
    issues: list[CriticalIssue]
    executive_summary: list[str]
    quick_lists: QuickLists
    classification_matrix: dict[str, int]
    narrative: str | None = None

    @property
    def high_priority_count(self) -> int:
        return sum(1 for issue in self.issues if issue.priority is Priority.HIGH)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe payload, the shape stored in the result cache."""
        return {
            "generated_at": self.generated_at.isoformat(),
            "season": self.season.value,
            "parameters": self.parameters,
            "executive_summary": list(self.executive_summary),
            "metrics": [m.to_dict() for m in self.metrics],
            "quick_lists": self.quick_lists.to_dict(),
            "issues": [i.to_dict() for i in self.issues],
            "classification_matrix": dict(self.classification_matrix),
            "narrative": self.narrative,
            "last_updated": self.generated_at.isoformat(),
        }


class AnalyticsOrchestrator:
    def __init__(self, config: AnalysisConfig | None = None):
        self.config = config or AnalysisConfig()
        self.demand_model = DemandModel(
            variability_factor=self.config.variability_factor,
            review_period_days=self.config.review_period_days,
        )
        self.classifier = ClassificationEngine(
            thresholds=self.config.classification,
            trust_supplied=self.config.trust_supplied_classes,
            variability_fallback=self.config.variability_factor,
        )
        self.detector = IssueDetector(self.config.detection)
        self.summary = SummaryBuilder(
            self.config.detection,
            top_n=self.config.quick_list_size,
            class_a_share=self.config.classification.abc_a,
        )

    def _compute_metrics(self, products: Sequence[ProductRecord], season: Season) -> list[ComputedMetrics]:
        profile = get_season_profile(season)
        if len(products) <= 1 or self.config.max_workers <= 1:
            return [self.demand_model.compute(p, profile) for p in products]
        # map() yields in input order; list() is the barrier
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            return list(pool.map(lambda p: self.demand_model.compute(p, profile), products))

    def compute_analysis(
        self,
        products: Sequence[ProductRecord],
        season: Season,
        now: datetime,
    ) -> AnalysisResult:
        """
        Run the full pipeline over a validated snapshot.

        Never raises for validated ProductRecords.
        """
        season = Season(season)
        metrics = self.classifier.classify(self._compute_metrics(products, season))
        issues = self.detector.detect(metrics)

        result = AnalysisResult(
            generated_at=now,
            season=season,
            parameters=season_parameters(),
            metrics=metrics,
            issues=issues,
            executive_summary=self.summary.executive_summary(metrics, issues),
            quick_lists=self.summary.quick_lists(metrics),
            classification_matrix=abc_xyz_matrix(metrics),
        )

        logger.info(
            "analysis.completed",
            season=season.value,
            product_count=len(metrics),
            issue_count=len(issues),
            high_priority=result.high_priority_count,
        )
        return result


def compute_analysis(
    products: Sequence[ProductRecord],
    season: Season,
    now: datetime,
    config: AnalysisConfig | None = None,
) -> AnalysisResult:
    """Convenience wrapper around a throwaway orchestrator."""
    return AnalyticsOrchestrator(config).compute_analysis(products, season, now)
