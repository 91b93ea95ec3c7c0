from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import pandas as pd


@dataclass(frozen=True)
class CanonicalColumns:
    vehicles: tuple[str, ...] = ("id", "year", "odometer", "status", "nickname", "make", "model")
    maintenance: tuple[str, ...] = ("id", "vehicle_id", "category", "timestamp", "cost", "notes")
    downtime: tuple[str, ...] = ("id", "vehicle_id", "start", "end")


CANONICAL = CanonicalColumns()

REQUIRED_IDENTIFIERS: dict[str, tuple[str, ...]] = {
    "vehicles": ("id",),
    "maintenance": ("id", "vehicle_id"),
    "downtime": ("id", "vehicle_id"),
}

RecordInput = pd.DataFrame | Iterable[Any] | None


def _record_to_mapping(record: Any) -> Mapping[str, Any]:
    if isinstance(record, Mapping):
        return record
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return dataclasses.asdict(record)
    if hasattr(record, "_asdict"):
        return record._asdict()
    raise ValueError(f"Unsupported record type: {type(record).__name__}")


def normalize_columns(df: pd.DataFrame, aliases: Mapping[str, str]) -> pd.DataFrame:
    """Rename source column labels to the canonical names used by the engine.

    An alias is skipped when its canonical target is already present, so frames that
    already use canonical names pass through untouched. When several aliases of one
    target are present, the first one listed wins and the others keep their labels.
    """
    rename_map: dict[str, str] = {}
    claimed = set(df.columns)
    for source, target in aliases.items():
        if source not in df.columns or source == target or target in claimed:
            continue
        rename_map[source] = target
        claimed.add(target)
    return df.rename(columns=rename_map)


def records_to_frame(
    records: RecordInput,
    columns: tuple[str, ...],
    aliases: Mapping[str, str] | None = None,
) -> pd.DataFrame:
    """Copy ``records`` into a DataFrame that carries every canonical column."""
    if records is None:
        frame = pd.DataFrame()
    elif isinstance(records, pd.DataFrame):
        frame = records.copy()
    else:
        frame = pd.DataFrame([dict(_record_to_mapping(record)) for record in records])

    if aliases:
        frame = normalize_columns(frame, aliases)
    for column in columns:
        if column not in frame.columns:
            frame[column] = pd.Series([None] * len(frame), index=frame.index, dtype="object")
    return frame.reset_index(drop=True)


def require_identifiers(df: pd.DataFrame, collection: str) -> pd.DataFrame:
    """Reject frames whose rows lack the identifiers the persistence layer guarantees."""
    duplicated = sorted({str(column) for column in df.columns[df.columns.duplicated()]})
    if duplicated:
        raise ValueError(f"{collection} records have duplicate columns: {', '.join(duplicated)}")
    if df.empty:
        return df
    for column in REQUIRED_IDENTIFIERS[collection]:
        if column not in df.columns or df[column].isna().any():
            raise ValueError(f"{collection} records missing required identifier: {column}")
    return df
