"""Closed vocabularies shared by every analytics component."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from fleet_analytics.numeric import is_missing


class VehicleStatus(str, Enum):
    in_service = "In Service"
    needs_attention = "Needs Attention"
    out_for_repair = "Out for Repair"
    retired = "Retired"


class MaintenanceCategory(str, Enum):
    oil_change = "Oil Change"
    tire_replacement = "Tire Replacement"
    brake_inspection = "Brake Inspection"
    engine_service = "Engine Service"
    transmission_service = "Transmission Service"
    dot_inspection = "DOT Inspection"
    general_repair = "General Repair"
    preventive_maintenance = "Preventive Maintenance"
    emergency_repair = "Emergency Repair"
    annual_inspection = "Annual Inspection"
    safety_check = "Safety Check"


PREVENTIVE_CATEGORIES: frozenset[str] = frozenset(
    category.value
    for category in (
        MaintenanceCategory.oil_change,
        MaintenanceCategory.dot_inspection,
        MaintenanceCategory.preventive_maintenance,
        MaintenanceCategory.brake_inspection,
        MaintenanceCategory.tire_replacement,
    )
)
REACTIVE_CATEGORIES: frozenset[str] = frozenset(
    category.value
    for category in (
        MaintenanceCategory.emergency_repair,
        MaintenanceCategory.engine_service,
        MaintenanceCategory.transmission_service,
    )
)

STATUS_SCORES: dict[str, int] = {
    VehicleStatus.in_service.value: 100,
    VehicleStatus.needs_attention.value: 70,
    VehicleStatus.out_for_repair.value: 30,
}
DEFAULT_STATUS_SCORE = 50

UNCATEGORIZED_LABEL = "Other"
UNKNOWN_STATUS_LABEL = "Unknown"

_SEPARATORS = re.compile(r"[\s_\-]+")


def _label_key(value: str) -> str:
    return _SEPARATORS.sub(" ", value).strip().casefold()


_STATUS_LOOKUP = {_label_key(status.value): status.value for status in VehicleStatus}
_CATEGORY_LOOKUP = {_label_key(category.value): category.value for category in MaintenanceCategory}


def _clean_text(value: Any) -> str | None:
    if is_missing(value):
        return None
    text = str(value).strip()
    return text or None


def normalize_status(value: Any) -> str | None:
    """Map a status label to its canonical form; unknown statuses become ``None``."""
    text = _clean_text(value)
    if text is None:
        return None
    return _STATUS_LOOKUP.get(_label_key(text))


def normalize_category(value: Any) -> str | None:
    """Map a category label to its canonical form.

    Unknown non-empty labels are kept verbatim so they still rank and bucket under
    their own name. Empty or missing labels become ``None``.
    """
    text = _clean_text(value)
    if text is None:
        return None
    return _CATEGORY_LOOKUP.get(_label_key(text), text)


def status_score(status: str | None) -> int:
    if status is None:
        return DEFAULT_STATUS_SCORE
    return STATUS_SCORES.get(status, DEFAULT_STATUS_SCORE)
