from __future__ import annotations

import pandas as pd

from fleet_analytics.categories import UNCATEGORIZED_LABEL
from fleet_analytics.numeric import round_half_up

COST_BREAKDOWN_COLUMNS = ["category", "amount", "percentage"]
TREND_COLUMNS = ["month", "total_cost", "record_count", "month_start"]
ISSUE_COLUMNS = ["category", "count"]


def build_cost_breakdown(df: pd.DataFrame) -> pd.DataFrame:
    """Sum cost per category over sanitized records, largest spend first.

    Expects the ``category_normalized`` and ``cost_value`` columns prepared by the
    snapshot builder. Uncategorized spend is reported under ``Other`` so the amounts
    reconcile with the fleet total; categories with no accumulated cost are omitted.
    """
    if df.empty:
        return pd.DataFrame(columns=COST_BREAKDOWN_COLUMNS)

    categories = df["category_normalized"].fillna(UNCATEGORIZED_LABEL)
    amounts = df["cost_value"].groupby(categories, sort=True).sum()
    total_cost = float(df["cost_value"].sum())

    breakdown = amounts[amounts > 0].rename("amount").rename_axis("category").reset_index()
    if breakdown.empty:
        return pd.DataFrame(columns=COST_BREAKDOWN_COLUMNS)
    breakdown["percentage"] = [
        int(round_half_up(amount / total_cost * 100)) if total_cost > 0 else 0
        for amount in breakdown["amount"]
    ]
    breakdown = breakdown.sort_values(
        ["amount", "category"],
        ascending=[False, True],
        kind="mergesort",
    )
    return breakdown[COST_BREAKDOWN_COLUMNS].reset_index(drop=True)


def build_maintenance_trends(df: pd.DataFrame, timezone: str = "UTC") -> pd.DataFrame:
    """Monthly cost and record count, one row per calendar month with records.

    Rows are ordered by the first-of-month instant, never by the label, because
    ``Dec 24`` sorts after ``Jan 25`` as text.
    """
    if df.empty:
        return pd.DataFrame(columns=TREND_COLUMNS)

    local = df["timestamp_parsed"].dt.tz_convert(timezone)
    month_start = local.dt.tz_localize(None).dt.to_period("M").dt.to_timestamp()
    grouped = (
        pd.DataFrame({"month_start": month_start, "cost_value": df["cost_value"]})
        .groupby("month_start", sort=True)
        .agg(total_cost=("cost_value", "sum"), record_count=("cost_value", "size"))
        .reset_index()
        .sort_values("month_start", kind="mergesort")
    )
    grouped["month"] = grouped["month_start"].dt.strftime("%b %y")
    grouped["record_count"] = grouped["record_count"].astype(int)
    grouped["total_cost"] = grouped["total_cost"].astype(float)
    return grouped[TREND_COLUMNS].reset_index(drop=True)


def build_issue_frequency(df: pd.DataFrame) -> pd.DataFrame:
    """Rank categories by occurrence; equal counts fall back to ordinal label order."""
    if df.empty:
        return pd.DataFrame(columns=ISSUE_COLUMNS)

    categories = df["category_normalized"].dropna()
    if categories.empty:
        return pd.DataFrame(columns=ISSUE_COLUMNS)
    counts = categories.value_counts(sort=False)
    ranked = sorted(counts.items(), key=lambda item: (-int(item[1]), str(item[0])))
    return pd.DataFrame(
        [(str(category), int(count)) for category, count in ranked],
        columns=ISSUE_COLUMNS,
    )


def build_data_quality(
    *,
    vehicles: pd.DataFrame,
    maintenance: pd.DataFrame,
    downtime: pd.DataFrame,
    dropped_maintenance: int,
    dropped_downtime: int,
) -> pd.DataFrame:
    known_vehicle_ids = set(vehicles["id"].astype(str)) if not vehicles.empty else set()

    def _orphans(frame: pd.DataFrame) -> int:
        if frame.empty:
            return 0
        return int((~frame["vehicle_id"].astype(str).isin(known_vehicle_ids)).sum())

    invalid_cost = 0
    missing_category = 0
    if not maintenance.empty:
        raw_cost = pd.to_numeric(maintenance["cost"], errors="coerce")
        invalid_cost = int((raw_cost.isna() & maintenance["cost"].notna()).sum())
        missing_category = int(maintenance["category_normalized"].isna().sum())

    unknown_status = 0
    if not vehicles.empty:
        unknown_status = int(vehicles["status_normalized"].isna().sum())

    metrics = [
        ("vehicles_total", int(len(vehicles))),
        ("maintenance_total", int(len(maintenance))),
        ("downtime_total", int(len(downtime))),
        ("maintenance_invalid_timestamp", int(dropped_maintenance)),
        ("downtime_invalid_start", int(dropped_downtime)),
        ("maintenance_invalid_cost", invalid_cost),
        ("maintenance_missing_category", missing_category),
        ("maintenance_unknown_vehicle", _orphans(maintenance)),
        ("downtime_unknown_vehicle", _orphans(downtime)),
        ("vehicles_unknown_status", unknown_status),
    ]
    return pd.DataFrame(metrics, columns=["metric", "value"])
