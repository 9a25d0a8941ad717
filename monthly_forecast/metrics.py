"""Evaluation metrics for the validation hold-out of a training run.

The network is trained on scaled quantities; these helpers are applied after
scaling back to the original units so the numbers can be read directly as
"units sold".  A convenience function ``compute_metrics`` aggregates them into
a dictionary.
"""

from typing import Dict, Optional, Sequence

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score


def smape(actual: Sequence[float], forecast: Sequence[float]) -> float:
    """Symmetric mean absolute percentage error of held-out monthly quantities.

    Both inputs are expected in units sold, i.e. after multiplying the network
    targets and outputs by the quantity scale.  A month where both the actual
    and forecast quantity are zero counts as a perfect hit instead of dividing
    by zero.  The result lies in ``[0, 200]``.
    """
    actual = np.asarray(actual, dtype=float)
    forecast = np.asarray(forecast, dtype=float)
    denom = (np.abs(actual) + np.abs(forecast)) / 2.0
    error = np.abs(forecast - actual)
    ratio = np.divide(error, denom, out=np.zeros_like(error), where=denom > 0)
    return float(ratio.mean() * 100.0)


def compute_metrics(
    y_true: Sequence[float],
    y_pred: Sequence[float],
    scale: float = 1.0,
) -> Dict[str, Optional[float]]:
    """Compute a suite of regression metrics.

    Parameters
    ----------
    y_true : sequence of float
        Targets as fed to the network.
    y_pred : sequence of float
        Raw network outputs for the same rows.
    scale : float, default 1.0
        Factor applied to both inputs before scoring.

    Returns
    -------
    dict
        Keys ``MAE``, ``RMSE``, ``R2`` and ``SMAPE``.  ``R2`` is ``None`` when
        fewer than two rows are available, since it is undefined there.
    """
    y_true = np.asarray(y_true, dtype=float) * scale
    y_pred = np.asarray(y_pred, dtype=float) * scale

    mae = float(mean_absolute_error(y_true, y_pred))
    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))
    r2 = None
    if len(y_true) > 1:
        r2 = float(r2_score(y_true, y_pred))
    return {
        "MAE": mae,
        "RMSE": rmse,
        "R2": r2,
        "SMAPE": smape(y_true, y_pred),
    }
