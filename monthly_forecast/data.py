"""Data loading and validation utilities.

This module turns raw CSV text into a list of :class:`Observation` records.
The input is expected to have a header row followed by ``date, product,
quantity`` columns where the date is a ``YYYY-MM`` month.  Rows that cannot be
interpreted are dropped rather than aborting the whole load; only an input
with no usable rows at all is treated as an error.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import List, Optional

from .errors import ParseError

logger = logging.getLogger(__name__)

_MONTH_PATTERN = re.compile(r"[0-9]{4}-(0[1-9]|1[0-2])")
_DECIMAL = r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?"
_LEADING_NUMBER = re.compile(_DECIMAL)
_NUMERIC_LITERAL = re.compile(_DECIMAL + r"|[+-]?Infinity|0[xX][0-9a-fA-F]+|0[bB][01]+|0[oO][0-7]+")


@dataclass(frozen=True)
class Observation:
    """One historical sales data point.

    ``month`` is stored as ``YYYY-MM-01`` so that sorting the strings gives
    chronological order.
    """

    month: str
    product: str
    quantity: float


def _clean_field(value: str) -> str:
    return value.replace('"', "").strip()


def _parse_number(value: str) -> Optional[float]:
    """Read the number at the start of ``value``, ignoring any trailing text.

    ``"100 units"`` reads as 100 and ``"1_000"`` as 1.  Returns None when the
    field does not start with a number.
    """
    match = _LEADING_NUMBER.match(value)
    if match is None:
        return None
    return float(match.group(0))


def _looks_numeric(value: str) -> bool:
    """Return True if a product field is really a misplaced number.

    The whole field has to be a numeric literal.  Empty strings count as
    numeric, which mirrors how column-shifted rows with a blank product slot
    are rejected.  ``"nan"`` and ``"inf"`` are treated as names.
    """
    if not value:
        return True
    return _NUMERIC_LITERAL.fullmatch(value) is not None


def _parse_row(line: str, strict: bool = False) -> Optional[Observation]:
    fields = [_clean_field(f) for f in line.split(",")]
    if len(fields) < 3:
        return None
    date, product, quantity = fields[:3]
    if not _MONTH_PATTERN.fullmatch(date):
        return None
    number = _parse_number(quantity)
    if number is None or not math.isfinite(number):
        return None
    if _looks_numeric(product):
        return None
    if strict and number < 0:
        return None
    return Observation(month=f"{date}-01", product=product, quantity=number)


def parse_records(text: str, strict: bool = False) -> List[Observation]:
    """Parse CSV text into a list of observations.

    The first line is treated as a header and skipped without inspection.
    Each remaining non-blank line is split on commas; double quotes are
    removed and whitespace trimmed from every field.

    Parameters
    ----------
    text : str
        Full contents of the CSV file.
    strict : bool, default False
        Also drop rows with a negative quantity.  By default negative values
        are accepted like any other finite number.

    Returns
    -------
    list of Observation
        Valid rows in their original order.

    Raises
    ------
    ParseError
        If no row survives validation (including empty or header-only input).
    """
    observations: List[Observation] = []
    dropped = 0
    for line in text.splitlines()[1:]:
        if not line.strip():
            continue
        record = _parse_row(line, strict=strict)
        if record is None:
            dropped += 1
            continue
        observations.append(record)

    if dropped:
        logger.debug("Dropped %d malformed row(s)", dropped)
    if not observations:
        raise ParseError("no valid data")
    logger.info("Parsed %d observation(s)", len(observations))
    return observations


def load_observations(file_path: str, encoding: str = "utf-8", strict: bool = False) -> List[Observation]:
    """Read a CSV file from disk and parse it with :func:`parse_records`."""
    with open(file_path, encoding=encoding) as fh:
        text = fh.read()
    return parse_records(text, strict=strict)
