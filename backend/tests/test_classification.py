"""
Tests for the Classification Engine — ABC / XYZ tiers.

Covers:
  - Cumulative-revenue ABC assignment
  - Coefficient-of-variation XYZ bands
  - Supplied-label vs computed path
  - Combined class matrix
"""

import pytest

from inventory.classification import (
    ClassificationEngine,
    ClassificationThresholds,
    abc_xyz_matrix,
    assign_abc,
    assign_xyz,
    coefficient_of_variation,
)
from inventory.demand import DemandModel
from inventory.models import ABCClass, Season, XYZClass
from retail.seasons import get_season_profile

HIGH = get_season_profile(Season.HIGH)


def _metrics(products):
    model = DemandModel()
    return [model.compute(p, HIGH) for p in products]


# ── Band Assignment ────────────────────────────────────────────────────


class TestBands:
    def test_abc_bands(self):
        t = ClassificationThresholds()
        assert assign_abc(0.0, t) is ABCClass.A
        assert assign_abc(0.79, t) is ABCClass.A
        assert assign_abc(0.80, t) is ABCClass.B
        assert assign_abc(0.94, t) is ABCClass.B
        assert assign_abc(0.95, t) is ABCClass.C

    def test_xyz_bands(self):
        t = ClassificationThresholds()
        assert assign_xyz(0.1, t) is XYZClass.X
        assert assign_xyz(0.5, t) is XYZClass.Y
        assert assign_xyz(0.99, t) is XYZClass.Y
        assert assign_xyz(1.0, t) is XYZClass.Z

    def test_invalid_thresholds(self):
        with pytest.raises(ValueError):
            ClassificationThresholds(abc_a=0.9, abc_b=0.8)
        with pytest.raises(ValueError):
            ClassificationThresholds(xyz_x=1.2, xyz_y=1.0)


# ── Coefficient of Variation ───────────────────────────────────────────


class TestCoefficientOfVariation:
    def test_constant_series(self):
        assert coefficient_of_variation([4, 4, 4, 4]) == 0.0

    def test_population_std(self):
        # mean 2, population σ 1
        assert coefficient_of_variation([1, 3]) == pytest.approx(0.5)

    def test_short_history_uses_fallback(self):
        assert coefficient_of_variation([], fallback=0.3) == 0.3
        assert coefficient_of_variation([5], fallback=0.7) == 0.7

    def test_zero_mean_is_erratic(self):
        assert coefficient_of_variation([0, 0, 0]) == float("inf")


# ── ABC Ranking ────────────────────────────────────────────────────────


class TestComputedABC:
    def test_revenue_ranking(self, make_product):
        # Expected revenue (price × seasonal demand): 800, 150, 40, 10 → total 1000
        products = [
            make_product(product_id="c", sku="C", unit_price=40, daily_demand_base=0.8),
            make_product(product_id="a", sku="A", unit_price=800, daily_demand_base=0.8),
            make_product(product_id="d", sku="D", unit_price=10, daily_demand_base=0.8),
            make_product(product_id="b", sku="B", unit_price=150, daily_demand_base=0.8),
        ]
        labels = ClassificationEngine().compute_abc(_metrics(products))
        assert labels == {"a": ABCClass.A, "b": ABCClass.B, "c": ABCClass.C, "d": ABCClass.C}

    def test_dominant_product_is_always_a(self, make_product):
        products = [
            make_product(product_id="big", sku="BIG", unit_price=1000, daily_demand_base=5),
            make_product(product_id="small", sku="SMALL", unit_price=20, daily_demand_base=0.1),
        ]
        labels = ClassificationEngine().compute_abc(_metrics(products))
        assert labels["big"] is ABCClass.A

    def test_zero_revenue_set_is_c(self, make_product):
        products = [
            make_product(product_id="x", sku="X", daily_demand_base=0),
            make_product(product_id="y", sku="Y", daily_demand_base=0),
        ]
        labels = ClassificationEngine().compute_abc(_metrics(products))
        assert set(labels.values()) == {ABCClass.C}


# ── Supplied vs Computed Path ──────────────────────────────────────────


class TestClassify:
    def test_supplied_labels_trusted(self, make_product):
        products = [
            make_product(product_id="1", sku="S1", unit_price=20, daily_demand_base=0.1, abc_class="A", xyz_class="Z"),
            make_product(product_id="2", sku="S2", unit_price=900, daily_demand_base=9),
        ]
        classified = ClassificationEngine().classify(_metrics(products))
        assert classified[0].abc_class is ABCClass.A
        assert classified[0].xyz_class is XYZClass.Z
        assert classified[1].abc_class is ABCClass.A
        assert classified[1].xyz_class is XYZClass.X

    def test_computed_path_ignores_supplied(self, make_product):
        products = [
            make_product(product_id="1", sku="S1", unit_price=20, daily_demand_base=0.1, abc_class="A"),
            make_product(product_id="2", sku="S2", unit_price=900, daily_demand_base=9),
        ]
        classified = ClassificationEngine(trust_supplied=False).classify(_metrics(products))
        assert classified[0].abc_class is ABCClass.B or classified[0].abc_class is ABCClass.C
        assert classified[1].abc_class is ABCClass.A

    def test_labels_filled_independently(self, make_product):
        product = make_product(abc_class="B", demand_history=[1, 9, 0, 14, 0, 2])
        [classified] = ClassificationEngine().classify(_metrics([product]))
        assert classified.abc_class is ABCClass.B
        assert classified.xyz_class is XYZClass.Z

    def test_input_order_preserved(self, make_product):
        products = [make_product(product_id=str(i), sku=f"S{i}", unit_price=20 + i) for i in range(6)]
        classified = ClassificationEngine().classify(_metrics(products))
        assert [m.sku for m in classified] == [p.sku for p in products]


# ── Matrix ─────────────────────────────────────────────────────────────


class TestMatrix:
    def test_all_combinations_present(self, make_product):
        products = [
            make_product(product_id="1", sku="S1", abc_class="A", xyz_class="X"),
            make_product(product_id="2", sku="S2", abc_class="A", xyz_class="X"),
            make_product(product_id="3", sku="S3", abc_class="C", xyz_class="Z"),
        ]
        matrix = abc_xyz_matrix(ClassificationEngine().classify(_metrics(products)))
        assert len(matrix) == 9
        assert matrix["AX"] == 2
        assert matrix["CZ"] == 1
        assert sum(matrix.values()) == 3
