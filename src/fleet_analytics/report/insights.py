from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import pandas as pd

from fleet_analytics.categories import (
    REACTIVE_CATEGORIES,
    MaintenanceCategory,
    VehicleStatus,
)
from fleet_analytics.numeric import round_half_up, safe_ratio

OPTIMAL_UTILIZATION = 80.0
GOOD_UTILIZATION = 60.0
GOOD_PREVENTIVE_SHARE = 60.0


@dataclass(frozen=True)
class Insight:
    key: str
    message: str


def utilization_label(fleet_utilization: float) -> str:
    if fleet_utilization > OPTIMAL_UTILIZATION:
        return "optimal"
    if fleet_utilization > GOOD_UTILIZATION:
        return "good"
    return "below target"


def month_over_month_change(trends: pd.DataFrame) -> float | None:
    """Percent change of the latest month's cost against the month before it."""
    if len(trends) < 2:
        return None
    last = float(trends["total_cost"].iloc[-1])
    previous = float(trends["total_cost"].iloc[-2])
    if previous <= 0:
        return 0.0
    return round_half_up((last - previous) / previous * 100, 1)


def preventive_spend_share(cost_breakdown: pd.DataFrame) -> float | None:
    if cost_breakdown.empty:
        return None
    amounts = dict(zip(cost_breakdown["category"], cost_breakdown["amount"], strict=False))
    preventive = float(amounts.get(MaintenanceCategory.preventive_maintenance.value, 0.0))
    reactive = float(sum(amounts.get(category, 0.0) for category in REACTIVE_CATEGORIES))
    if preventive + reactive <= 0:
        return None
    return round_half_up(preventive / (preventive + reactive) * 100, 0)


def build_insights(
    *,
    fleet_utilization: float,
    average_cost_per_vehicle: float,
    status_counts: Mapping[str, int],
    cost_breakdown: pd.DataFrame,
    trends: pd.DataFrame,
    issues: pd.DataFrame,
    maintenance_total: int,
) -> list[Insight]:
    insights = [
        Insight(
            key="utilization",
            message=(
                f"Fleet utilization is {utilization_label(fleet_utilization)} "
                f"at {fleet_utilization:.1f}%"
            ),
        )
    ]

    change = month_over_month_change(trends)
    if change is None:
        cost_message = f"Average maintenance cost: ${average_cost_per_vehicle:,.2f} per vehicle"
    else:
        direction = "increased" if change >= 0 else "decreased"
        cost_message = f"Maintenance costs {direction} by {abs(change):.1f}% from last period"
    insights.append(Insight(key="cost_trend", message=cost_message))

    if not issues.empty:
        top = issues.iloc[0]
        issue_message = f"Most frequent issue: {top['category']} ({int(top['count'])} occurrences)"
    elif maintenance_total == 0:
        issue_message = "No maintenance records available"
    else:
        issue_message = (
            f"{maintenance_total} maintenance records found, "
            "but no clear issue patterns identified"
        )
    insights.append(Insight(key="top_issue", message=issue_message))

    needs_attention = int(status_counts.get(VehicleStatus.needs_attention.value, 0))
    out_for_repair = int(status_counts.get(VehicleStatus.out_for_repair.value, 0))
    if needs_attention or out_for_repair:
        attention_message = (
            f"{needs_attention + out_for_repair} vehicles need attention "
            f"({needs_attention} maintenance, {out_for_repair} repairs)"
        )
    else:
        active = int(status_counts.get(VehicleStatus.in_service.value, 0))
        attention_message = f"All {active} active vehicles are operational"
    insights.append(Insight(key="attention", message=attention_message))

    if trends.empty:
        cadence_message = "No maintenance trends available"
    else:
        per_month = safe_ratio(float(trends["record_count"].sum()), float(len(trends)))
        cadence_message = f"Average {per_month:.1f} maintenance records per month"
    insights.append(Insight(key="monthly_cadence", message=cadence_message))

    share = preventive_spend_share(cost_breakdown)
    if share is None:
        preventive_message = "Insufficient data for cost analysis"
    elif share >= GOOD_PREVENTIVE_SHARE:
        preventive_message = (
            f"Good preventive maintenance ratio: {share:.0f}% preventive vs repairs"
        )
    else:
        preventive_message = (
            f"Consider more preventive maintenance: only {share:.0f}% preventive vs repairs"
        )
    insights.append(Insight(key="preventive_share", message=preventive_message))
    return insights
