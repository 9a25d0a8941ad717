"""Helpers for displaying forecasts.

These functions sit between the pipeline and whatever draws the chart: they
filter predictions down to a selected product, order them by month and
convert them into plain rows or a DataFrame.
"""

from typing import Dict, List, Sequence, Union

import pandas as pd

from .data import Observation
from .forecast import Prediction
from .model import ProgressEvent

ALL_PRODUCTS = "all"

PREDICTION_COLUMNS = ["month", "product", "predicted_quantity"]


def product_options(observations: Sequence[Observation]) -> List[str]:
    """Distinct products in the order they first appear in the data."""
    return list(dict.fromkeys(o.product for o in observations))


def select_predictions(predictions: Sequence[Prediction], product: str = ALL_PRODUCTS) -> List[Prediction]:
    """Predictions for one product, or all when ``product`` is ``"all"``, sorted by month.

    The sort is stable so products keep their relative order within a month.
    """
    selected = [p for p in predictions if product == ALL_PRODUCTS or p.product == product]
    selected.sort(key=lambda p: p.month)
    return selected


def chart_series(
    predictions: Sequence[Prediction],
    product: str = ALL_PRODUCTS,
) -> List[Dict[str, Union[str, int]]]:
    selected = select_predictions(predictions, product)
    return [{"name": p.month, "predicted": p.predicted_quantity, "product": p.product} for p in selected]


def predictions_to_frame(predictions: Sequence[Prediction]) -> pd.DataFrame:
    """Tabulate predictions with columns ``month``, ``product`` and ``predicted_quantity``."""
    frame = pd.DataFrame(
        [(p.month, p.product, p.predicted_quantity) for p in predictions],
        columns=PREDICTION_COLUMNS,
    )
    frame["predicted_quantity"] = frame["predicted_quantity"].astype(int)
    return frame


def status_message(event: ProgressEvent) -> str:
    return f"training epoch... {event.epoch}/{event.epochs}, loss: {event.loss:.4f}"
