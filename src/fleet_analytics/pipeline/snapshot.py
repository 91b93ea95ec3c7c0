from __future__ import annotations

import logging
from dataclasses import fields
from datetime import datetime
from typing import Any

import pandas as pd

from fleet_analytics.categories import UNKNOWN_STATUS_LABEL, VehicleStatus
from fleet_analytics.config import AnalyticsConfig
from fleet_analytics.features.aggregates import (
    build_cost_breakdown,
    build_data_quality,
    build_issue_frequency,
    build_maintenance_trends,
)
from fleet_analytics.io.schema import CANONICAL, RecordInput, records_to_frame, require_identifiers
from fleet_analytics.numeric import safe_ratio
from fleet_analytics.preprocess.records import normalize_downtime, normalize_maintenance
from fleet_analytics.preprocess.time import parse_timestamps, plausible_mask, sanitize_records
from fleet_analytics.preprocess.vehicles import normalize_vehicles
from fleet_analytics.report.contracts import (
    AnalyticsSnapshot,
    CostBreakdownEntry,
    IssueCount,
    MonthlyTrend,
    ReliabilityBreakdown,
    VehiclePerformance,
    VehicleReliability,
)
from fleet_analytics.report.insights import build_insights
from fleet_analytics.scoring.performance import rank_fleet_performance
from fleet_analytics.scoring.reliability import score_fleet_reliability

LOGGER = logging.getLogger(__name__)


def resolve_now(now: datetime | str | pd.Timestamp | None) -> pd.Timestamp:
    if now is None:
        return pd.Timestamp.now(tz="UTC")
    stamp = pd.Timestamp(now)
    if stamp.tzinfo is None:
        return stamp.tz_localize("UTC")
    return stamp.tz_convert("UTC")


def _recent_subset(
    sanitized: pd.DataFrame,
    *,
    now: pd.Timestamp,
    period_days: int | None,
) -> pd.DataFrame:
    if period_days is None or sanitized.empty:
        return sanitized
    window_start = now - pd.Timedelta(days=period_days)
    in_window = (sanitized["timestamp_parsed"] >= window_start) & (
        sanitized["timestamp_parsed"] <= now
    )
    return sanitized.loc[in_window].reset_index(drop=True)


def _prepare_downtime(
    downtime: pd.DataFrame,
    *,
    now: pd.Timestamp,
    config: AnalyticsConfig,
) -> tuple[pd.DataFrame, int]:
    sanitized, dropped = sanitize_records(
        downtime,
        "start",
        now=now,
        min_year=config.time.min_year,
        max_years_ahead=config.time.max_years_ahead,
        label="downtime records",
    )
    end = parse_timestamps(sanitized["end"])
    usable_end = plausible_mask(
        end,
        now=now,
        min_year=config.time.min_year,
        max_years_ahead=config.time.max_years_ahead,
    )
    # an unusable end means the downtime is still open
    sanitized["end_parsed"] = end.where(usable_end)
    return sanitized, dropped


def _status_counts(vehicles: pd.DataFrame) -> dict[str, int]:
    counts = {status.value: 0 for status in VehicleStatus}
    counts[UNKNOWN_STATUS_LABEL] = 0
    for status in vehicles.get("status_normalized", pd.Series(dtype="object")):
        label = status if isinstance(status, str) else UNKNOWN_STATUS_LABEL
        counts[label] += 1
    return counts


def compute_analytics(
    vehicles: RecordInput,
    maintenance_records: RecordInput,
    downtime_records: RecordInput = None,
    *,
    now: datetime | str | pd.Timestamp | None = None,
    config: AnalyticsConfig | None = None,
    aliases: dict[str, dict[str, str]] | None = None,
) -> AnalyticsSnapshot:
    """Derive the full analytics snapshot from one read of the three collections.

    Inputs are copied, never mutated. ``now`` anchors vehicle age, the plausibility
    window, the recent period and open downtime; pass it explicitly to get repeatable
    output. Empty inputs yield a complete snapshot of zeros and empty sections.
    """
    config = config or AnalyticsConfig()
    aliases = aliases or {}
    as_of = resolve_now(now)

    vehicle_frame = normalize_vehicles(
        require_identifiers(
            records_to_frame(vehicles, CANONICAL.vehicles, aliases.get("vehicles")),
            "vehicles",
        )
    )
    maintenance_frame = normalize_maintenance(
        require_identifiers(
            records_to_frame(
                maintenance_records,
                CANONICAL.maintenance,
                aliases.get("maintenance"),
            ),
            "maintenance",
        )
    )
    downtime_frame = normalize_downtime(
        require_identifiers(
            records_to_frame(downtime_records, CANONICAL.downtime, aliases.get("downtime")),
            "downtime",
        )
    )

    sanitized, dropped_maintenance = sanitize_records(
        maintenance_frame,
        "timestamp",
        now=as_of,
        min_year=config.time.min_year,
        max_years_ahead=config.time.max_years_ahead,
        label="maintenance records",
    )
    recent = _recent_subset(sanitized, now=as_of, period_days=config.scoring.recent_period_days)
    downtime, dropped_downtime = _prepare_downtime(downtime_frame, now=as_of, config=config)

    vehicle_count = int(len(vehicle_frame))
    status_counts = _status_counts(vehicle_frame)
    fleet_utilization = (
        safe_ratio(status_counts[VehicleStatus.in_service.value], vehicle_count) * 100
    )
    total_cost = float(sanitized["cost_value"].sum()) if not sanitized.empty else 0.0
    average_cost = safe_ratio(total_cost, vehicle_count)

    cost_breakdown = build_cost_breakdown(sanitized)
    trends = build_maintenance_trends(sanitized, timezone=config.time.timezone)
    issues = build_issue_frequency(sanitized)
    reliability = score_fleet_reliability(
        vehicle_frame,
        maintenance_frame,
        recent,
        downtime,
        now=as_of,
    )
    performance = rank_fleet_performance(vehicle_frame, maintenance_frame)
    quality = build_data_quality(
        vehicles=vehicle_frame,
        maintenance=maintenance_frame,
        downtime=downtime_frame,
        dropped_maintenance=dropped_maintenance,
        dropped_downtime=dropped_downtime,
    )
    insights = build_insights(
        fleet_utilization=fleet_utilization,
        average_cost_per_vehicle=average_cost,
        status_counts=status_counts,
        cost_breakdown=cost_breakdown,
        trends=trends,
        issues=issues,
        maintenance_total=int(len(maintenance_frame)),
    )

    LOGGER.info(
        "Computed fleet analytics: vehicles=%d maintenance=%d sanitized=%d downtime=%d",
        vehicle_count,
        len(maintenance_frame),
        len(sanitized),
        len(downtime),
    )
    return AnalyticsSnapshot(
        as_of=as_of,
        vehicle_count=vehicle_count,
        fleet_utilization=fleet_utilization,
        total_maintenance_cost=total_cost,
        average_cost_per_vehicle=average_cost,
        cost_breakdown=tuple(
            CostBreakdownEntry(
                category=str(row.category),
                amount=float(row.amount),
                percentage=int(row.percentage),
            )
            for row in cost_breakdown.itertuples(index=False)
        ),
        maintenance_trends=tuple(
            MonthlyTrend(
                month=str(row.month),
                total_cost=float(row.total_cost),
                record_count=int(row.record_count),
            )
            for row in trends.itertuples(index=False)
        ),
        most_common_issues=tuple(
            IssueCount(category=str(category), count=int(count))
            for category, count in zip(issues["category"], issues["count"], strict=False)
        ),
        vehicle_reliability=tuple(
            _reliability_entry(row) for row in reliability.to_dict(orient="records")
        ),
        vehicle_performance=tuple(
            VehiclePerformance(
                vehicle_id=str(row.vehicle_id),
                vehicle_name=str(row.vehicle_name),
                status=str(row.status),
                total_cost=float(row.total_cost),
                record_count=int(row.record_count),
                cost_per_distance_unit=float(row.cost_per_distance_unit),
            )
            for row in performance.itertuples(index=False)
        ),
        status_counts=status_counts,
        data_quality={str(metric): int(value) for metric, value in quality.itertuples(index=False)},
        insights=tuple(insights),
    )


def _reliability_entry(row: dict[str, Any]) -> VehicleReliability:
    breakdown = {
        item.name: int(row[item.name]) if item.type == "int" else float(row[item.name])
        for item in fields(ReliabilityBreakdown)
    }
    return VehicleReliability(
        vehicle_id=str(row["vehicle_id"]),
        vehicle_name=str(row["vehicle_name"]),
        score=float(row["score"]),
        band=str(row["band"]),
        downtime_hours=float(row["downtime_hours"]),
        breakdown=ReliabilityBreakdown(**breakdown),
    )
