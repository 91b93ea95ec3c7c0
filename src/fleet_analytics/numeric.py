from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import numpy as np
import pandas as pd


def is_missing(value: Any) -> bool:
    if value is None or value is pd.NA or value is pd.NaT:
        return True
    if isinstance(value, (float, np.floating)):
        return math.isnan(value)
    return False


def round_half_up(value: float, digits: int = 0) -> float:
    """Round on the decimal representation, ties away from zero (60.25 -> 60.3)."""
    if not math.isfinite(value):
        return 0.0
    if abs(value) >= 1e15:
        return float(value)
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    # normalizes -0.0
    return float(rounded) + 0.0


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    if denominator == 0 or not math.isfinite(denominator):
        return default
    return numerator / denominator


def coerce_non_negative(values: pd.Series) -> pd.Series:
    """Numeric view of ``values`` where non-numeric, NaN, infinite, negative or boolean -> 0."""
    is_bool = values.map(lambda value: isinstance(value, (bool, np.bool_))).astype(bool)
    numeric = pd.to_numeric(values.where(~is_bool), errors="coerce").astype("float64")
    numeric = numeric.where(np.isfinite(numeric) & (numeric > 0.0), 0.0)
    return numeric.fillna(0.0)
