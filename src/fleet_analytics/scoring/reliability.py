"""Multi-factor 0-100 reliability score per vehicle.

The score averages a status component with a maintenance-cadence component, then
subtracts penalties for emergency work, age and mileage and adds a bonus for a
preventive-heavy maintenance mix::

    raw = (status + cadence) / 2 - emergency - age - mileage + preventive_bonus
    score = clamp(raw, 0, 100) rounded to one decimal

Downtime hours ride along with the score but do not feed into it.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

import pandas as pd

from fleet_analytics.categories import (
    PREVENTIVE_CATEGORIES,
    REACTIVE_CATEGORIES,
    MaintenanceCategory,
    status_score,
)
from fleet_analytics.numeric import round_half_up, safe_ratio

MIN_EXPECTED_MAINTENANCE_PER_YEAR = 4
DISTANCE_PER_EXPECTED_SERVICE = 15_000
CADENCE_WEIGHT = 30.0
EMERGENCY_PENALTY_PER_REPAIR = 10
AGE_PENALTY_PER_YEAR = 2
MAX_AGE_PENALTY = 20
DISTANCE_PER_MILEAGE_STEP = 50_000
MILEAGE_PENALTY_PER_STEP = 3
MAX_MILEAGE_PENALTY = 15
DEFAULT_PREVENTIVE_RATIO = 0.8
PREVENTIVE_BONUS_WEIGHT = 15.0

GOOD_BAND_THRESHOLD = 80.0
AVERAGE_BAND_THRESHOLD = 60.0

RELIABILITY_COLUMNS = [
    "vehicle_id",
    "vehicle_name",
    "score",
    "band",
    "downtime_hours",
    "status_score",
    "maintenance_score",
    "emergency_penalty",
    "age_penalty",
    "mileage_penalty",
    "preventive_bonus",
    "vehicle_age",
    "odometer",
    "emergency_repairs",
    "preventive_maintenance",
    "reactive_maintenance",
    "preventive_ratio",
    "expected_maintenance_per_year",
    "actual_maintenance_in_period",
]


@dataclass(frozen=True)
class ScoreInputs:
    status: str | None
    vehicle_age: int
    odometer: int
    actual_maintenance_in_period: int
    emergency_repairs: int
    preventive_maintenance: int
    reactive_maintenance: int


@dataclass(frozen=True)
class ScoreBreakdown:
    score: float
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


def reliability_band(score: float) -> str:
    if score >= GOOD_BAND_THRESHOLD:
        return "good"
    if score >= AVERAGE_BAND_THRESHOLD:
        return "average"
    return "poor"


def score_vehicle(inputs: ScoreInputs) -> ScoreBreakdown:
    base_status = status_score(inputs.status)
    expected = max(
        MIN_EXPECTED_MAINTENANCE_PER_YEAR,
        inputs.odometer // DISTANCE_PER_EXPECTED_SERVICE,
    )
    maintenance_score = max(
        0.0,
        100.0 - (inputs.actual_maintenance_in_period / expected) * CADENCE_WEIGHT,
    )
    emergency_penalty = inputs.emergency_repairs * EMERGENCY_PENALTY_PER_REPAIR
    age_penalty = min(MAX_AGE_PENALTY, inputs.vehicle_age * AGE_PENALTY_PER_YEAR)
    mileage_penalty = min(
        MAX_MILEAGE_PENALTY,
        (inputs.odometer // DISTANCE_PER_MILEAGE_STEP) * MILEAGE_PENALTY_PER_STEP,
    )
    classified = inputs.preventive_maintenance + inputs.reactive_maintenance
    preventive_ratio = safe_ratio(
        inputs.preventive_maintenance,
        classified,
        default=DEFAULT_PREVENTIVE_RATIO,
    )
    preventive_bonus = preventive_ratio * PREVENTIVE_BONUS_WEIGHT

    raw_score = (
        (base_status + maintenance_score) / 2
        - emergency_penalty
        - age_penalty
        - mileage_penalty
        + preventive_bonus
    )
    score = round_half_up(min(100.0, max(0.0, raw_score)), 1)
    return ScoreBreakdown(
        score=score,
        status_score=base_status,
        maintenance_score=round_half_up(maintenance_score, 1),
        emergency_penalty=emergency_penalty,
        age_penalty=age_penalty,
        mileage_penalty=mileage_penalty,
        preventive_bonus=round_half_up(preventive_bonus, 1),
        vehicle_age=inputs.vehicle_age,
        odometer=inputs.odometer,
        emergency_repairs=inputs.emergency_repairs,
        preventive_maintenance=inputs.preventive_maintenance,
        reactive_maintenance=inputs.reactive_maintenance,
        preventive_ratio=round_half_up(preventive_ratio * 100, 1),
        expected_maintenance_per_year=expected,
        actual_maintenance_in_period=inputs.actual_maintenance_in_period,
    )


def _vehicle_age(manufacture_year: float, current_year: int) -> int:
    if manufacture_year is None or not math.isfinite(manufacture_year):
        return 0
    return max(0, current_year - int(manufacture_year))


def _counts_by_vehicle(df: pd.DataFrame, mask: pd.Series | None = None) -> dict[str, int]:
    if df.empty:
        return {}
    keys = df["vehicle_key"] if mask is None else df.loc[mask, "vehicle_key"]
    return {str(key): int(count) for key, count in keys.value_counts().items()}


def build_downtime_hours(downtime: pd.DataFrame, now: pd.Timestamp) -> dict[str, float]:
    """Total downtime hours per vehicle; open-ended records run until ``now``.

    Overlapping and zero-length intervals are summed as recorded. An interval that
    ends before it starts contributes nothing.
    """
    if downtime.empty:
        return {}
    end = downtime["end_parsed"].fillna(now)
    hours = ((end - downtime["start_parsed"]).dt.total_seconds() / 3600.0).clip(lower=0.0)
    totals = hours.groupby(downtime["vehicle_key"]).sum()
    return {str(key): float(value) for key, value in totals.items()}


def score_fleet_reliability(
    vehicles: pd.DataFrame,
    maintenance: pd.DataFrame,
    recent: pd.DataFrame,
    downtime: pd.DataFrame,
    *,
    now: pd.Timestamp,
) -> pd.DataFrame:
    """Score every vehicle, best first; equal scores order by vehicle id.

    ``maintenance`` is the full history regardless of timestamp quality, ``recent``
    is the sanitized subset that counts toward the maintenance cadence and
    ``downtime`` carries ``start_parsed``/``end_parsed`` instants.
    """
    if vehicles.empty:
        return pd.DataFrame(columns=RELIABILITY_COLUMNS)

    if maintenance.empty:
        emergency_counts: dict[str, int] = {}
        preventive_counts: dict[str, int] = {}
        reactive_counts: dict[str, int] = {}
    else:
        category = maintenance["category_normalized"]
        is_emergency = (category == MaintenanceCategory.emergency_repair.value) | maintenance[
            "mentions_emergency"
        ]
        emergency_counts = _counts_by_vehicle(maintenance, is_emergency)
        preventive_counts = _counts_by_vehicle(maintenance, category.isin(PREVENTIVE_CATEGORIES))
        reactive_counts = _counts_by_vehicle(maintenance, category.isin(REACTIVE_CATEGORIES))
    recent_counts = _counts_by_vehicle(recent)
    downtime_hours = build_downtime_hours(downtime, now=now)

    rows = []
    for vehicle in vehicles.itertuples(index=False):
        key = vehicle.vehicle_key
        breakdown = score_vehicle(
            ScoreInputs(
                status=vehicle.status_normalized,
                vehicle_age=_vehicle_age(vehicle.year_value, now.year),
                odometer=int(vehicle.odometer_value),
                actual_maintenance_in_period=recent_counts.get(key, 0),
                emergency_repairs=emergency_counts.get(key, 0),
                preventive_maintenance=preventive_counts.get(key, 0),
                reactive_maintenance=reactive_counts.get(key, 0),
            )
        )
        rows.append(
            {
                "vehicle_id": key,
                "vehicle_name": vehicle.vehicle_name,
                "band": reliability_band(breakdown.score),
                "downtime_hours": round_half_up(downtime_hours.get(key, 0.0), 1),
                **asdict(breakdown),
            }
        )

    rows.sort(key=lambda row: (-row["score"], row["vehicle_id"]))
    return pd.DataFrame(rows, columns=RELIABILITY_COLUMNS)
