from __future__ import annotations

import pandas as pd

from fleet_analytics.features.aggregates import COST_BREAKDOWN_COLUMNS, ISSUE_COLUMNS, TREND_COLUMNS
from fleet_analytics.report.insights import (
    build_insights,
    month_over_month_change,
    preventive_spend_share,
    utilization_label,
)


def _trends(costs: list[float]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "month": [f"M{index}" for index in range(len(costs))],
            "total_cost": costs,
            "record_count": [2] * len(costs),
            "month_start": pd.date_range("2026-01-01", periods=len(costs), freq="MS"),
        }
    )


def test_utilization_label_thresholds() -> None:
    assert utilization_label(85.0) == "optimal"
    assert utilization_label(80.0) == "good"
    assert utilization_label(61.0) == "good"
    assert utilization_label(60.0) == "below target"


def test_month_over_month_change() -> None:
    assert month_over_month_change(_trends([100.0])) is None
    assert month_over_month_change(_trends([0.0, 50.0])) == 0.0
    assert month_over_month_change(_trends([80.0, 100.0, 75.0])) == -25.0


def test_preventive_spend_share_compares_against_reactive_spend() -> None:
    breakdown = pd.DataFrame(
        [("Preventive Maintenance", 600.0, 60), ("Engine Service", 400.0, 40)],
        columns=COST_BREAKDOWN_COLUMNS,
    )

    assert preventive_spend_share(breakdown) == 60.0
    assert preventive_spend_share(pd.DataFrame(columns=COST_BREAKDOWN_COLUMNS)) is None


def test_build_insights_for_a_busy_fleet() -> None:
    insights = build_insights(
        fleet_utilization=75.0,
        average_cost_per_vehicle=1234.5,
        status_counts={"In Service": 3, "Needs Attention": 1, "Out for Repair": 0},
        cost_breakdown=pd.DataFrame(
            [("Engine Service", 900.0, 90), ("Preventive Maintenance", 100.0, 10)],
            columns=COST_BREAKDOWN_COLUMNS,
        ),
        trends=_trends([100.0, 150.0]),
        issues=pd.DataFrame([("Oil Change", 4)], columns=ISSUE_COLUMNS),
        maintenance_total=4,
    )
    messages = {insight.key: insight.message for insight in insights}

    assert messages["utilization"] == "Fleet utilization is good at 75.0%"
    assert messages["cost_trend"] == "Maintenance costs increased by 50.0% from last period"
    assert messages["top_issue"] == "Most frequent issue: Oil Change (4 occurrences)"
    assert messages["attention"] == "1 vehicles need attention (1 maintenance, 0 repairs)"
    assert messages["monthly_cadence"] == "Average 2.0 maintenance records per month"
    assert messages["preventive_share"] == (
        "Consider more preventive maintenance: only 10% preventive vs repairs"
    )


def test_build_insights_falls_back_without_history() -> None:
    insights = build_insights(
        fleet_utilization=100.0,
        average_cost_per_vehicle=0.0,
        status_counts={"In Service": 2},
        cost_breakdown=pd.DataFrame(columns=COST_BREAKDOWN_COLUMNS),
        trends=pd.DataFrame(columns=TREND_COLUMNS),
        issues=pd.DataFrame(columns=ISSUE_COLUMNS),
        maintenance_total=3,
    )
    messages = {insight.key: insight.message for insight in insights}

    assert messages["utilization"] == "Fleet utilization is optimal at 100.0%"
    assert messages["cost_trend"] == "Average maintenance cost: $0.00 per vehicle"
    assert messages["top_issue"] == (
        "3 maintenance records found, but no clear issue patterns identified"
    )
    assert messages["attention"] == "All 2 active vehicles are operational"
    assert messages["monthly_cadence"] == "No maintenance trends available"
    assert messages["preventive_share"] == "Insufficient data for cost analysis"
