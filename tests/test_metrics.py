"""
Tests for validation metrics.
"""
import pytest

from monthly_forecast.metrics import compute_metrics, smape


class TestComputeMetrics:

    def test_perfect_prediction(self):
        result = compute_metrics([1.0, 2.0, 3.0], [1.0, 2.0, 3.0])

        assert result["MAE"] == 0.0
        assert result["RMSE"] == 0.0
        assert result["R2"] == pytest.approx(1.0)
        assert result["SMAPE"] == pytest.approx(0.0)

    def test_scale_applied(self):
        result = compute_metrics([0.1, 0.2], [0.2, 0.2], scale=1000.0)

        assert result["MAE"] == pytest.approx(50.0)
        assert result["RMSE"] == pytest.approx(70.7106, rel=1e-4)

    def test_single_row_has_no_r2(self):
        result = compute_metrics([0.1], [0.2])

        assert result["R2"] is None

    def test_smape_is_bounded(self):
        assert smape([0.0], [5.0]) == pytest.approx(200.0)

    def test_smape_zero_months_count_as_exact(self):
        assert smape([0.0, 100.0], [0.0, 100.0]) == pytest.approx(0.0)
        assert smape([0.0, 100.0], [0.0, 50.0]) == pytest.approx(100.0 * (50.0 / 75.0) / 2)
