from __future__ import annotations

import pandas as pd

from fleet_analytics.config import AnalyticsConfig, ScoringConfig
from fleet_analytics.pipeline.snapshot import compute_analytics
from fleet_analytics.scoring.reliability import ScoreInputs, reliability_band, score_vehicle

NOW = pd.Timestamp("2026-06-15T12:00:00Z")


def _inputs(**overrides) -> ScoreInputs:
    values = {
        "status": "In Service",
        "vehicle_age": 0,
        "odometer": 0,
        "actual_maintenance_in_period": 0,
        "emergency_repairs": 0,
        "preventive_maintenance": 0,
        "reactive_maintenance": 0,
    }
    values.update(overrides)
    return ScoreInputs(**values)


def test_score_vehicle_matches_hand_computed_breakdown() -> None:
    breakdown = score_vehicle(
        _inputs(
            status="Needs Attention",
            vehicle_age=10,
            odometer=120_000,
            actual_maintenance_in_period=6,
            preventive_maintenance=5,
            reactive_maintenance=1,
        )
    )

    assert breakdown.expected_maintenance_per_year == 8
    assert breakdown.maintenance_score == 77.5
    assert breakdown.status_score == 70
    assert breakdown.age_penalty == 20
    assert breakdown.mileage_penalty == 6
    assert breakdown.emergency_penalty == 0
    assert breakdown.preventive_bonus == 12.5
    assert breakdown.preventive_ratio == 83.3
    # raw score is exactly 60.25
    assert breakdown.score == 60.3
    assert reliability_band(breakdown.score) == "average"


def test_score_vehicle_without_history_uses_default_preventive_ratio() -> None:
    breakdown = score_vehicle(_inputs())

    assert breakdown.preventive_ratio == 80.0
    assert breakdown.preventive_bonus == 12.0
    assert breakdown.maintenance_score == 100.0
    assert breakdown.score == 100.0
    assert reliability_band(breakdown.score) == "good"


def test_score_vehicle_clamps_at_zero() -> None:
    breakdown = score_vehicle(
        _inputs(
            status="Out for Repair",
            vehicle_age=15,
            odometer=300_000,
            actual_maintenance_in_period=100,
            emergency_repairs=5,
            reactive_maintenance=5,
        )
    )

    assert breakdown.maintenance_score == 0.0
    assert breakdown.mileage_penalty == 15
    assert breakdown.score == 0.0
    assert reliability_band(breakdown.score) == "poor"


def test_unknown_status_scores_as_fifty() -> None:
    assert score_vehicle(_inputs(status=None)).status_score == 50
    assert score_vehicle(_inputs(status="Retired")).status_score == 50


def test_fleet_scores_the_documented_vehicle() -> None:
    vehicles = [
        {
            "id": "T1",
            "year": 2016,
            "odometer": 120_000,
            "status": "Needs Attention",
            "nickname": "Big Blue",
        }
    ]
    categories = [
        "Oil Change",
        "Oil Change",
        "Brake Inspection",
        "DOT Inspection",
        "Tire Replacement",
        "Engine Service",
    ]
    maintenance = [
        {
            "id": f"m{index}",
            "vehicle_id": "T1",
            "category": category,
            "timestamp": f"2026-0{index + 1}-10",
            "cost": 100,
        }
        for index, category in enumerate(categories)
    ]

    snapshot = compute_analytics(vehicles, maintenance, now=NOW)
    (entry,) = snapshot.vehicle_reliability

    assert entry.vehicle_id == "T1"
    assert entry.vehicle_name == "Big Blue"
    assert entry.score == 60.3
    assert entry.band == "average"
    assert entry.breakdown.vehicle_age == 10
    assert entry.breakdown.actual_maintenance_in_period == 6


def test_emergency_repairs_count_categories_and_notes() -> None:
    vehicles = [{"id": "T1", "year": 2026, "odometer": 0, "status": "In Service"}]
    maintenance = [
        {"id": "m1", "vehicle_id": "T1", "category": "Emergency Repair", "timestamp": "2026-05-01"},
        {
            "id": "m2",
            "vehicle_id": "T1",
            "category": "General Repair",
            "timestamp": "2026-05-02",
            "notes": "EMERGENCY tow after breakdown",
        },
    ]

    (entry,) = compute_analytics(vehicles, maintenance, now=NOW).vehicle_reliability

    assert entry.breakdown.emergency_repairs == 2
    assert entry.breakdown.emergency_penalty == 20
    assert entry.breakdown.preventive_ratio == 0.0
    assert entry.breakdown.maintenance_score == 85.0
    assert entry.score == 72.5


def test_emergency_count_uses_full_history() -> None:
    vehicles = [{"id": "T1", "year": 2026, "odometer": 0, "status": "In Service"}]
    maintenance = [
        {"id": "m1", "vehicle_id": "T1", "category": "Emergency Repair", "timestamp": "garbage"},
    ]

    (entry,) = compute_analytics(vehicles, maintenance, now=NOW).vehicle_reliability

    assert entry.breakdown.emergency_repairs == 1
    assert entry.breakdown.actual_maintenance_in_period == 0


def test_equal_scores_order_by_vehicle_id() -> None:
    vehicles = [
        {"id": "B", "year": 2020, "odometer": 1000, "status": "In Service"},
        {"id": "C", "year": 2020, "odometer": 1000, "status": "Out for Repair"},
        {"id": "A", "year": 2020, "odometer": 1000, "status": "In Service"},
    ]

    snapshot = compute_analytics(vehicles, [], now=NOW)

    assert [entry.vehicle_id for entry in snapshot.vehicle_reliability] == ["A", "B", "C"]


def test_future_manufacture_year_clamps_age_to_zero() -> None:
    vehicles = [
        {"id": "T1", "year": 2030, "status": "In Service"},
        {"id": "T2", "year": None, "status": "In Service"},
    ]

    snapshot = compute_analytics(vehicles, [], now=NOW)

    assert [entry.breakdown.vehicle_age for entry in snapshot.vehicle_reliability] == [0, 0]
    assert [entry.breakdown.age_penalty for entry in snapshot.vehicle_reliability] == [0, 0]


def test_recent_period_limits_cadence_count() -> None:
    vehicles = [{"id": "T1", "year": 2026, "odometer": 0, "status": "In Service"}]
    maintenance = [
        {"id": "m1", "vehicle_id": "T1", "category": "Oil Change", "timestamp": "2026-06-05"},
        {"id": "m2", "vehicle_id": "T1", "category": "Oil Change", "timestamp": "2026-01-05"},
    ]
    config = AnalyticsConfig(scoring=ScoringConfig(recent_period_days=30))

    (all_time,) = compute_analytics(vehicles, maintenance, now=NOW).vehicle_reliability
    (recent,) = compute_analytics(
        vehicles,
        maintenance,
        now=NOW,
        config=config,
    ).vehicle_reliability

    assert all_time.breakdown.actual_maintenance_in_period == 2
    assert recent.breakdown.actual_maintenance_in_period == 1
    assert recent.breakdown.preventive_maintenance == 2


def test_downtime_hours_include_open_intervals_and_ignore_negative_ones() -> None:
    vehicles = [{"id": "T1", "status": "Out for Repair"}, {"id": "T2", "status": "In Service"}]
    downtime = [
        {"id": "d1", "vehicle_id": "T1", "start": "2026-06-15T02:00:00Z", "end": None},
        {
            "id": "d2",
            "vehicle_id": "T1",
            "start": "2026-06-01T00:00:00Z",
            "end": "2026-06-01T06:30:00Z",
        },
        {
            "id": "d3",
            "vehicle_id": "T1",
            "start": "2026-06-02T10:00:00Z",
            "end": "2026-06-02T08:00:00Z",
        },
        {"id": "d4", "vehicle_id": "T2", "start": "garbage", "end": "2026-06-02T08:00:00Z"},
    ]

    snapshot = compute_analytics(vehicles, [], downtime, now=NOW)
    later = compute_analytics(vehicles, [], downtime, now=NOW + pd.Timedelta(hours=2))
    hours = {entry.vehicle_id: entry.downtime_hours for entry in snapshot.vehicle_reliability}
    later_hours = {entry.vehicle_id: entry.downtime_hours for entry in later.vehicle_reliability}

    assert hours == {"T1": 16.5, "T2": 0.0}
    assert later_hours["T1"] == 18.5
    assert snapshot.data_quality["downtime_invalid_start"] == 1


def test_downtime_does_not_change_the_score() -> None:
    vehicles = [{"id": "T1", "year": 2020, "odometer": 50_000, "status": "In Service"}]
    downtime = [{"id": "d1", "vehicle_id": "T1", "start": "2026-01-01", "end": "2026-03-01"}]

    with_downtime = compute_analytics(vehicles, [], downtime, now=NOW)
    without_downtime = compute_analytics(vehicles, [], now=NOW)

    (scored,) = with_downtime.vehicle_reliability
    (baseline,) = without_downtime.vehicle_reliability
    assert scored.downtime_hours > 0
    assert scored.score == baseline.score


def test_huge_odometer_caps_mileage_penalty() -> None:
    vehicles = [{"id": "T1", "year": 2020, "odometer": 1e20, "status": "In Service"}]
    maintenance = [
        {"id": "m1", "vehicle_id": "T1", "category": "Oil Change", "timestamp": "2026-05-01",
         "cost": 10},
    ]

    snapshot = compute_analytics(vehicles, maintenance, now=NOW)
    (entry,) = snapshot.vehicle_reliability

    assert entry.breakdown.odometer > 0
    assert entry.breakdown.mileage_penalty == 15
    assert entry.breakdown.expected_maintenance_per_year > 4
    assert 0.0 <= entry.score <= 100.0
    assert snapshot.vehicle_performance[0].cost_per_distance_unit == 0.0
