from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from fleet_analytics.categories import normalize_status
from fleet_analytics.numeric import is_missing

# keeps floored readings inside int64
MAX_ODOMETER = float(np.iinfo("int64").max // 2)


def _display_name(nickname: Any, make: Any, model: Any, fallback: str) -> str:
    if isinstance(nickname, str) and nickname.strip():
        return nickname.strip()
    parts = [str(part).strip() for part in (make, model) if not is_missing(part)]
    label = " ".join(part for part in parts if part)
    return label or fallback


def normalize_vehicles(df: pd.DataFrame) -> pd.DataFrame:
    """Add the typed columns the scorers read; the source columns are left untouched.

    Missing, non-numeric or negative odometers read as 0 and a missing manufacture
    year reads as ``NaN`` (treated as age 0 downstream). Readings beyond
    ``MAX_ODOMETER`` are capped there.
    """
    working = df.copy()
    working["vehicle_key"] = working["id"].astype(str)
    working["status_normalized"] = working["status"].map(normalize_status)

    odometer = pd.to_numeric(working["odometer"], errors="coerce").astype("float64")
    odometer = odometer.where(np.isfinite(odometer) & (odometer > 0), 0.0).fillna(0.0)
    odometer = odometer.clip(upper=MAX_ODOMETER)
    working["odometer_value"] = np.floor(odometer).astype("int64")

    year = pd.to_numeric(working["year"], errors="coerce").astype("float64")
    working["year_value"] = year.where(np.isfinite(year))

    working["vehicle_name"] = [
        _display_name(nickname, make, model, fallback=key)
        for nickname, make, model, key in zip(
            working["nickname"],
            working["make"],
            working["model"],
            working["vehicle_key"],
            strict=False,
        )
    ]
    return working
