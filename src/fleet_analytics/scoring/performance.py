from __future__ import annotations

import pandas as pd

from fleet_analytics.categories import UNKNOWN_STATUS_LABEL
from fleet_analytics.numeric import round_half_up, safe_ratio

PERFORMANCE_COLUMNS = [
    "vehicle_id",
    "vehicle_name",
    "status",
    "total_cost",
    "record_count",
    "cost_per_distance_unit",
]


def rank_fleet_performance(vehicles: pd.DataFrame, maintenance: pd.DataFrame) -> pd.DataFrame:
    """Rank vehicles by maintenance spend per odometer unit, cheapest first.

    Uses the full maintenance history. A vehicle with a zero odometer reports 0.0
    regardless of spend and therefore ranks as the best performer; that skew is
    deliberate until the product decides how to score such vehicles.
    """
    if vehicles.empty:
        return pd.DataFrame(columns=PERFORMANCE_COLUMNS)

    if maintenance.empty:
        cost_totals: dict[str, float] = {}
        record_counts: dict[str, int] = {}
    else:
        grouped = maintenance.groupby("vehicle_key")["cost_value"]
        cost_totals = {str(key): float(value) for key, value in grouped.sum().items()}
        record_counts = {str(key): int(value) for key, value in grouped.size().items()}

    rows = []
    for vehicle in vehicles.itertuples(index=False):
        key = vehicle.vehicle_key
        total_cost = cost_totals.get(key, 0.0)
        odometer = int(vehicle.odometer_value)
        status = vehicle.status_normalized
        rows.append(
            {
                "vehicle_id": key,
                "vehicle_name": vehicle.vehicle_name,
                "status": status if isinstance(status, str) else UNKNOWN_STATUS_LABEL,
                "total_cost": total_cost,
                "record_count": record_counts.get(key, 0),
                "cost_per_distance_unit": round_half_up(safe_ratio(total_cost, odometer), 4),
            }
        )

    rows.sort(key=lambda row: (row["cost_per_distance_unit"], row["vehicle_id"]))
    return pd.DataFrame(rows, columns=PERFORMANCE_COLUMNS)
