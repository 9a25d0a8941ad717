"""Generate future monthly predictions from a trained model."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from .features import FORECAST_HORIZON, QUANTITY_SCALE, EncodingTable
from .model import TrainedModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Prediction:
    """Forecast quantity for one product in one future ``YYYY-MM`` month."""

    month: str
    product: str
    predicted_quantity: int


def _to_quantity(raw: float) -> int:
    # half-up rounding, clamped at zero
    return max(0, int(math.floor(raw * QUANTITY_SCALE + 0.5)))


def generate(
    model: TrainedModel,
    encoding: EncodingTable,
    last_observed_month: Optional[str] = None,
    horizon: int = FORECAST_HORIZON,
) -> List[Prediction]:
    """Predict the next ``horizon`` months for every product.

    The time feature continues the training scale:
    ``(n_months + offset) / (n_months + horizon)``, so the last forecast month
    maps to exactly 1.0.  Product codes come from ``encoding`` as captured at
    training time.

    Parameters
    ----------
    model : TrainedModel
        Network returned by a training run.
    encoding : EncodingTable
        Table produced alongside the training tensors.
    last_observed_month : str, optional
        ``YYYY-MM`` or ``YYYY-MM-DD`` month after which forecasting starts.
        Defaults to the latest month in ``encoding``.
    horizon : int, default 6
        Months per product.

    Returns
    -------
    list of Prediction
        Grouped by product in encoding order, then by month ascending.
    """
    if horizon < 1:
        raise ValueError("horizon must be at least 1")
    last = pd.Period(last_observed_month or encoding.last_month, freq="M")
    n_months = len(encoding.months)

    keys = []
    rows = []
    for product in encoding.products:
        code = encoding.product_code[product]
        for offset in range(1, horizon + 1):
            keys.append((str(last + offset), product))
            rows.append([(n_months + offset) / (n_months + horizon), code])

    raw = model.predict_many(rows)
    predictions = [
        Prediction(month=month, product=product, predicted_quantity=_to_quantity(value))
        for (month, product), value in zip(keys, raw)
    ]
    logger.info("Generated %d prediction(s) for %d product(s)", len(predictions), len(encoding.products))
    return predictions
