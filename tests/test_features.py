"""
Tests for the product/month feature encoding.
"""
import numpy as np
import pytest

from monthly_forecast.errors import EncodingError
from monthly_forecast.features import QUANTITY_SCALE, build_encoding, encode

from conftest import make_observations


class TestEncode:

    def test_shapes_for_small_example(self, observations):
        features, targets, table = encode(observations)

        assert features.shape == (3, 2)
        assert targets.shape == (3,)
        assert table.products == ["Widget", "Gadget"]
        assert table.months == ["2024-01-01", "2024-02-01"]

    def test_feature_values(self, observations):
        features, targets, _ = encode(observations)

        np.testing.assert_allclose(features, [[0.0, 0.0], [0.5, 0.0], [0.0, 0.5]])
        np.testing.assert_allclose(targets, [0.1, 0.12, 0.05], rtol=1e-6)

    def test_targets_scaled(self, observations):
        _, targets, _ = encode(observations)

        assert targets[0] * QUANTITY_SCALE == pytest.approx(100.0)

    def test_duplicates_contribute_rows(self):
        obs = make_observations([("2024-01", "A", 1), ("2024-01", "A", 2)])
        features, targets, table = encode(obs)

        assert features.shape == (2, 2)
        assert table.products == ["A"]
        assert table.months == ["2024-01-01"]

    def test_empty_raises(self):
        with pytest.raises(EncodingError):
            encode([])


class TestEncodingTable:

    def test_products_in_first_seen_order(self):
        obs = make_observations([("2024-03", "B", 1), ("2024-01", "A", 1), ("2024-02", "B", 1), ("2024-02", "C", 1)])
        table = build_encoding(obs)

        assert table.products == ["B", "A", "C"]
        assert table.product_code == pytest.approx({"B": 0.0, "A": 1 / 3, "C": 2 / 3})

    def test_months_sorted(self):
        obs = make_observations([("2024-03", "A", 1), ("2023-12", "A", 1), ("2024-01", "A", 1)])
        table = build_encoding(obs)

        assert table.months == ["2023-12-01", "2024-01-01", "2024-03-01"]
        assert table.month_rank == {"2023-12-01": 0, "2024-01-01": 1, "2024-03-01": 2}
        assert table.last_month == "2024-03-01"

    def test_deterministic(self, history):
        first = build_encoding(history)
        second = build_encoding(list(history))

        assert first == second
        assert first.product_code == second.product_code
        assert first.month_index == second.month_index

    def test_order_sensitive_for_products(self):
        a = build_encoding(make_observations([("2024-01", "A", 1), ("2024-01", "B", 1)]))
        b = build_encoding(make_observations([("2024-01", "B", 1), ("2024-01", "A", 1)]))

        assert a != b
        assert a.product_code["A"] == 0.0
        assert b.product_code["B"] == 0.0

    def test_code_ranges(self, history):
        table = build_encoding(history)
        n_products = len(table.products)
        n_months = len(table.months)

        assert min(table.product_code.values()) == 0.0
        assert max(table.product_code.values()) == pytest.approx((n_products - 1) / n_products)
        assert min(table.month_index.values()) == 0.0
        assert max(table.month_index.values()) == pytest.approx((n_months - 1) / n_months)

    def test_unknown_value_raises(self, observations):
        table = build_encoding(observations)

        with pytest.raises(EncodingError):
            table.feature_row("2024-01-01", "Sprocket")
