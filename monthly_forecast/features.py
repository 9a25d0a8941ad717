"""Feature encoding for the forecast network.

Each observation becomes a two-column feature row: a normalised time index
derived from the rank of its month, and a scalar code for its product.  The
mapping is captured in an :class:`EncodingTable` so that forecasts can be
produced with exactly the encoding the model was trained on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np

from .data import Observation
from .errors import EncodingError

logger = logging.getLogger(__name__)

#: Targets are divided by this constant before training and predictions are
#: multiplied by it afterwards.
QUANTITY_SCALE = 1000.0

#: Number of future months generated per product.
FORECAST_HORIZON = 6


@dataclass(frozen=True)
class EncodingTable:
    """Deterministic product and month mapping derived from observations.

    Parameters
    ----------
    products : list of str
        Distinct products in order of first appearance.
    months : list of str
        Distinct ``YYYY-MM-01`` months, sorted.
    """

    products: List[str]
    months: List[str]
    product_code: Dict[str, float] = field(init=False, compare=False)
    month_rank: Dict[str, int] = field(init=False, compare=False)

    def __post_init__(self) -> None:
        n_products = len(self.products)
        codes = {p: i / n_products for i, p in enumerate(self.products)}
        ranks = {m: i for i, m in enumerate(self.months)}
        # frozen dataclass; derived fields are filled in once here
        object.__setattr__(self, "product_code", codes)
        object.__setattr__(self, "month_rank", ranks)

    @property
    def month_index(self) -> Dict[str, float]:
        """Normalised time index ``rank / len(months)`` for every month."""
        n_months = len(self.months)
        return {m: r / n_months for m, r in self.month_rank.items()}

    @property
    def last_month(self) -> str:
        return self.months[-1]

    def feature_row(self, month: str, product: str) -> List[float]:
        try:
            return [self.month_rank[month] / len(self.months), self.product_code[product]]
        except KeyError as exc:
            raise EncodingError(f"Value {exc.args[0]!r} is not part of the encoding") from None


def build_encoding(observations: Sequence[Observation]) -> EncodingTable:
    """Derive the :class:`EncodingTable` for a set of observations."""
    if not observations:
        raise EncodingError("No data available for processing")
    products = list(dict.fromkeys(o.product for o in observations))
    months = sorted(set(o.month for o in observations))
    return EncodingTable(products=products, months=months)


def encode(observations: Sequence[Observation]) -> Tuple[np.ndarray, np.ndarray, EncodingTable]:
    """Turn observations into training tensors.

    Returns
    -------
    features : np.ndarray
        ``float32`` array of shape ``(n, 2)`` holding
        ``[month_rank / n_months, product_code]`` per observation.
    targets : np.ndarray
        ``float32`` array of shape ``(n,)`` holding ``quantity / 1000``.
    table : EncodingTable
        The mapping used, to be reused when generating forecasts.
    """
    table = build_encoding(observations)
    features = np.array(
        [table.feature_row(o.month, o.product) for o in observations],
        dtype=np.float32,
    )
    targets = np.array([o.quantity / QUANTITY_SCALE for o in observations], dtype=np.float32)
    logger.debug(
        "Encoded %d row(s): %d product(s), %d month(s)",
        len(features),
        len(table.products),
        len(table.months),
    )
    return features, targets, table
