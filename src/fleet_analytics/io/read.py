from __future__ import annotations

import json
from pathlib import Path

import pandas as pd


def load_table(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix == ".csv":
        # utf-8-sig strips BOM-prefixed headers commonly found in exported CSV files.
        return pd.read_csv(path, encoding="utf-8-sig")
    if suffix == ".json":
        return _read_json_records(path)
    raise ValueError(f"Unsupported table file type: {path.suffix}")


def _read_json_records(path: Path) -> pd.DataFrame:
    """Read a JSON array of objects, or an object wrapping one under a single key."""
    data = json.loads(path.read_text(encoding="utf-8") or "[]")
    if isinstance(data, dict):
        arrays = [value for value in data.values() if isinstance(value, list)]
        if len(arrays) != 1:
            raise ValueError(f"Expected a JSON array of records in {path}")
        data = arrays[0]
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of records in {path}")
    # keep raw values; timestamps and costs are coerced by the engine
    return pd.DataFrame.from_records(data) if data else pd.DataFrame()


def load_collection(path: Path | None) -> pd.DataFrame:
    if path is None:
        return pd.DataFrame()
    return load_table(path)
