"""Shapes handed to presentation and export consumers.

Every value here is derived; consumers read these structures and never recompute
metrics on their own.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from types import MappingProxyType
from typing import Any

import pandas as pd

from fleet_analytics.features.aggregates import (
    COST_BREAKDOWN_COLUMNS,
    ISSUE_COLUMNS,
)
from fleet_analytics.report.insights import Insight
from fleet_analytics.scoring.performance import PERFORMANCE_COLUMNS
from fleet_analytics.scoring.reliability import RELIABILITY_COLUMNS


@dataclass(frozen=True)
class CostBreakdownEntry:
    category: str
    amount: float
    percentage: int


@dataclass(frozen=True)
class MonthlyTrend:
    month: str
    total_cost: float
    record_count: int


@dataclass(frozen=True)
class IssueCount:
    category: str
    count: int


@dataclass(frozen=True)
class ReliabilityBreakdown:
    status_score: int
    maintenance_score: float
    emergency_penalty: int
    age_penalty: int
    mileage_penalty: int
    preventive_bonus: float
    vehicle_age: int
    odometer: int
    emergency_repairs: int
    preventive_maintenance: int
    reactive_maintenance: int
    preventive_ratio: float
    expected_maintenance_per_year: int
    actual_maintenance_in_period: int


@dataclass(frozen=True)
class VehicleReliability:
    vehicle_id: str
    vehicle_name: str
    score: float
    band: str
    downtime_hours: float
    breakdown: ReliabilityBreakdown


@dataclass(frozen=True)
class VehiclePerformance:
    vehicle_id: str
    vehicle_name: str
    status: str
    total_cost: float
    record_count: int
    cost_per_distance_unit: float


@dataclass(frozen=True)
class AnalyticsSnapshot:
    as_of: pd.Timestamp
    vehicle_count: int
    fleet_utilization: float
    total_maintenance_cost: float
    average_cost_per_vehicle: float
    cost_breakdown: tuple[CostBreakdownEntry, ...] = ()
    maintenance_trends: tuple[MonthlyTrend, ...] = ()
    most_common_issues: tuple[IssueCount, ...] = ()
    vehicle_reliability: tuple[VehicleReliability, ...] = ()
    vehicle_performance: tuple[VehiclePerformance, ...] = ()
    status_counts: Mapping[str, int] = field(default_factory=dict)
    data_quality: Mapping[str, int] = field(default_factory=dict)
    insights: tuple[Insight, ...] = ()

    def __post_init__(self) -> None:
        # read-only views
        object.__setattr__(self, "status_counts", MappingProxyType(dict(self.status_counts)))
        object.__setattr__(self, "data_quality", MappingProxyType(dict(self.data_quality)))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, Mapping):
                payload[item.name] = dict(value)
            elif isinstance(value, tuple):
                payload[item.name] = [asdict(entry) for entry in value]
            else:
                payload[item.name] = value
        payload["as_of"] = self.as_of.isoformat()
        return payload

    def tables(self) -> dict[str, pd.DataFrame]:
        """One flat table per list-valued section, for CSV/parquet export."""
        reliability_rows = []
        for entry in self.vehicle_reliability:
            row = {
                "vehicle_id": entry.vehicle_id,
                "vehicle_name": entry.vehicle_name,
                "score": entry.score,
                "band": entry.band,
                "downtime_hours": entry.downtime_hours,
            }
            row.update(asdict(entry.breakdown))
            reliability_rows.append(row)

        return {
            "cost_breakdown": pd.DataFrame(
                [asdict(entry) for entry in self.cost_breakdown],
                columns=COST_BREAKDOWN_COLUMNS,
            ),
            "maintenance_trends": pd.DataFrame(
                [asdict(entry) for entry in self.maintenance_trends],
                columns=[item.name for item in fields(MonthlyTrend)],
            ),
            "most_common_issues": pd.DataFrame(
                [asdict(entry) for entry in self.most_common_issues],
                columns=ISSUE_COLUMNS,
            ),
            "vehicle_reliability": pd.DataFrame(reliability_rows, columns=RELIABILITY_COLUMNS),
            "vehicle_performance": pd.DataFrame(
                [asdict(entry) for entry in self.vehicle_performance],
                columns=PERFORMANCE_COLUMNS,
            ),
            "data_quality": pd.DataFrame(
                list(self.data_quality.items()),
                columns=["metric", "value"],
            ),
        }
