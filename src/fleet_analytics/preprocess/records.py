from __future__ import annotations

import pandas as pd

from fleet_analytics.categories import normalize_category
from fleet_analytics.numeric import coerce_non_negative


def normalize_maintenance(df: pd.DataFrame) -> pd.DataFrame:
    working = df.copy()
    working["vehicle_key"] = working["vehicle_id"].astype(str)
    working["category_normalized"] = working["category"].map(normalize_category)
    working["cost_value"] = coerce_non_negative(working["cost"])
    working["mentions_emergency"] = working["notes"].map(
        lambda notes: isinstance(notes, str) and "emergency" in notes.lower()
    ).astype(bool)
    return working


def normalize_downtime(df: pd.DataFrame) -> pd.DataFrame:
    working = df.copy()
    working["vehicle_key"] = working["vehicle_id"].astype(str)
    return working
