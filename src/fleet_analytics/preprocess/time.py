from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

import numpy as np
import pandas as pd

LOGGER = logging.getLogger(__name__)

UNIX_EPOCH = pd.Timestamp(0, tz="UTC")
# int64 nanosecond bounds
_MAX_EPOCH_MILLIS = 9.2e15
_MIN_NS_YEAR = 1678
_MAX_NS_YEAR = 2261


def _is_epoch_number(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, float, np.integer, np.floating))


def _is_date_like(value: Any) -> bool:
    return isinstance(value, (str, datetime, date, np.datetime64, pd.Timestamp))


def parse_timestamps(values: pd.Series) -> pd.Series:
    """Parse a column of nominal timestamps into UTC instants.

    Strings and date/datetime objects are parsed leniently; real numbers are epoch
    milliseconds. Anything else, including unparseable text and instants outside the
    representable range, becomes ``NaT``.
    """
    parsed = pd.Series(pd.NaT, index=values.index, dtype="datetime64[ns, UTC]")
    if values.empty:
        return parsed

    numeric_mask = values.map(_is_epoch_number).astype(bool)
    if numeric_mask.any():
        millis = pd.to_numeric(values[numeric_mask], errors="coerce").astype("float64")
        millis = millis.where(np.isfinite(millis) & (millis.abs() < _MAX_EPOCH_MILLIS))
        parsed.loc[numeric_mask] = pd.to_datetime(millis, unit="ms", utc=True, errors="coerce")

    text_mask = values.map(_is_date_like).astype(bool)
    if text_mask.any():
        parsed.loc[text_mask] = pd.to_datetime(values[text_mask].map(_parse_one), utc=True)
    return parsed


def _parse_one(value: Any) -> pd.Timestamp:
    if isinstance(value, str) and not value.strip():
        return pd.NaT
    try:
        stamp = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError, pd.errors.OutOfBoundsDatetime):
        return pd.NaT
    if stamp is pd.NaT or not _MIN_NS_YEAR <= stamp.year <= _MAX_NS_YEAR:
        return pd.NaT
    stamp = stamp.as_unit("ns")
    if stamp.tzinfo is None:
        return stamp.tz_localize("UTC")
    return stamp.tz_convert("UTC")


def plausible_mask(
    parsed: pd.Series,
    *,
    now: pd.Timestamp,
    min_year: int = 1900,
    max_years_ahead: int = 10,
) -> pd.Series:
    """True where an instant is real, after the epoch default, and in the year window."""
    years = parsed.dt.year
    return (
        parsed.notna()
        & (parsed > UNIX_EPOCH)
        & (years >= min_year)
        & (years <= now.year + max_years_ahead)
    ).fillna(False).astype(bool)


def sanitize_records(
    df: pd.DataFrame,
    column: str,
    *,
    now: pd.Timestamp,
    min_year: int = 1900,
    max_years_ahead: int = 10,
    label: str = "records",
) -> tuple[pd.DataFrame, int]:
    """Keep rows whose ``column`` holds a plausible instant.

    Returns a new frame with the parsed instant in ``<column>_parsed`` plus the number
    of rows dropped. Dropped rows are a diagnostic, never an error.
    """
    parsed_column = f"{column}_parsed"
    working = df.copy()
    if column in working.columns:
        working[parsed_column] = parse_timestamps(working[column])
    else:
        working[parsed_column] = pd.Series(pd.NaT, index=working.index, dtype="datetime64[ns, UTC]")
    keep = plausible_mask(
        working[parsed_column],
        now=now,
        min_year=min_year,
        max_years_ahead=max_years_ahead,
    )
    dropped = int((~keep).sum())
    if dropped:
        LOGGER.warning(
            "Dropped %d of %d %s with missing or implausible %s",
            dropped,
            len(working),
            label,
            column,
        )
    return working.loc[keep].reset_index(drop=True), dropped
