"""
Tests for display helpers.
"""
from monthly_forecast.forecast import Prediction
from monthly_forecast.model import ProgressEvent
from monthly_forecast.presentation import (
    ALL_PRODUCTS,
    PREDICTION_COLUMNS,
    chart_series,
    predictions_to_frame,
    product_options,
    select_predictions,
    status_message,
)

from conftest import make_observations

PREDICTIONS = [
    Prediction("2024-03", "Widget", 10),
    Prediction("2024-04", "Widget", 11),
    Prediction("2024-03", "Gadget", 5),
    Prediction("2024-04", "Gadget", 6),
]


class TestSelection:

    def test_all_products_sorted_by_month(self):
        result = select_predictions(PREDICTIONS, ALL_PRODUCTS)

        assert [(p.month, p.product) for p in result] == [
            ("2024-03", "Widget"),
            ("2024-03", "Gadget"),
            ("2024-04", "Widget"),
            ("2024-04", "Gadget"),
        ]

    def test_single_product(self):
        result = select_predictions(PREDICTIONS, "Gadget")

        assert [p.predicted_quantity for p in result] == [5, 6]

    def test_unknown_product(self):
        assert select_predictions(PREDICTIONS, "Sprocket") == []

    def test_chart_series(self):
        assert chart_series(PREDICTIONS, "Widget") == [
            {"name": "2024-03", "predicted": 10, "product": "Widget"},
            {"name": "2024-04", "predicted": 11, "product": "Widget"},
        ]

    def test_product_options(self):
        obs = make_observations([("2024-01", "B", 1), ("2024-02", "A", 1), ("2024-03", "B", 1)])

        assert product_options(obs) == ["B", "A"]


class TestFormatting:

    def test_predictions_to_frame(self):
        frame = predictions_to_frame(PREDICTIONS)

        assert list(frame.columns) == PREDICTION_COLUMNS
        assert len(frame) == 4
        assert frame["predicted_quantity"].tolist() == [10, 11, 5, 6]

    def test_empty_frame(self):
        frame = predictions_to_frame([])

        assert list(frame.columns) == PREDICTION_COLUMNS
        assert frame.empty

    def test_status_message(self):
        event = ProgressEvent(epoch=20, epochs=150, loss=0.123456)

        assert status_message(event) == "training epoch... 20/150, loss: 0.1235"
