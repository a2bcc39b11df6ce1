"""Reusable betting math helpers for decimal odds and probabilities."""

from __future__ import annotations

import math
from typing import Sequence

OddsValue = int | float

__all__ = [
    "InvalidOddsError",
    "OddsValue",
    "apply_margin",
    "implied_probability",
    "normalize",
    "validate_decimal_odds",
]


class InvalidOddsError(ValueError):
    """Raised when a decimal odds value cannot be priced."""


def validate_decimal_odds(value: OddsValue) -> float:
    """Coerce ``value`` into validated decimal odds.

    Decimal odds are a payout multiplier, so anything below ``1.0`` (which
    includes zero and negative prices) is rejected, as are non-finite values.
    """

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidOddsError(f"Invalid odds {value!r}: expected a number")
    odds = float(value)
    if not math.isfinite(odds):
        raise InvalidOddsError(f"Invalid odds {value!r}: must be finite")
    if odds < 1.0:
        raise InvalidOddsError(f"Invalid odds {value!r}: decimal odds must be >= 1.0")
    return odds


def implied_probability(odds: OddsValue) -> float:
    """Return the bookmaker's implied probability (``1 / odds``)."""

    return 1.0 / validate_decimal_odds(odds)


def normalize(probabilities: Sequence[float]) -> list[float]:
    """Scale ``probabilities`` so that they sum to one.

    A zero total leaves the values unchanged.
    """

    values = [float(value) for value in probabilities]
    total = sum(values)
    if total == 0.0:
        return values
    return [value / total for value in values]


def apply_margin(probability: float, margin: float) -> float:
    """Convert a fair probability into bookmaker odds carrying ``margin``."""

    if not 0.0 < probability <= 1.0:
        raise ValueError(f"Probability must be within (0, 1], got {probability!r}")
    return (1.0 / probability) * margin
