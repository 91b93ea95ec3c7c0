from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pandas as pd

from fleet_analytics.paths import OutputPaths
from fleet_analytics.report.contracts import AnalyticsSnapshot


def write_table(df: pd.DataFrame, path: Path, fmt: str = "parquet") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == "parquet":
        df.to_parquet(path, index=False)
        return path
    if fmt == "csv":
        df.to_csv(path, index=False)
        return path
    raise ValueError(f"Unsupported table format: {fmt}")


def write_summary(data: dict[str, Any], path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, sort_keys=True, default=str), encoding="utf-8")
    return path


def write_snapshot(
    snapshot: AnalyticsSnapshot,
    paths: OutputPaths,
    fmt: str = "parquet",
) -> dict[str, Path]:
    """Write the snapshot summary JSON plus one table per section."""
    written = {"snapshot": write_summary(snapshot.to_dict(), paths.summary / "snapshot.json")}
    for name, table in snapshot.tables().items():
        written[name] = write_table(table, paths.tables / f"{name}.{fmt}", fmt=fmt)
    return written
