from __future__ import annotations

import os
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_VEHICLE_COLUMNS = {
    "truckId": "id",
    "mileage": "odometer",
    "manufactureYear": "year",
}
DEFAULT_MAINTENANCE_COLUMNS = {
    "truckId": "vehicle_id",
    "vehicleId": "vehicle_id",
    "type": "category",
    "date": "timestamp",
}
DEFAULT_DOWNTIME_COLUMNS = {
    "truckId": "vehicle_id",
    "vehicleId": "vehicle_id",
    "startTime": "start",
    "startDate": "start",
    "endTime": "end",
    "endDate": "end",
}


class TimeConfig(BaseModel):
    timezone: str = "UTC"
    min_year: int = Field(default=1900, ge=1)
    max_years_ahead: int = Field(default=10, ge=0)

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value


class ScoringConfig(BaseModel):
    recent_period_days: int | None = Field(default=None, ge=1)


class ColumnsConfig(BaseModel):
    vehicles: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_VEHICLE_COLUMNS))
    maintenance: dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_MAINTENANCE_COLUMNS)
    )
    downtime: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_DOWNTIME_COLUMNS))


class InputConfig(BaseModel):
    vehicles_path: str | None = None
    maintenance_path: str | None = None
    downtime_path: str | None = None


class OutputsConfig(BaseModel):
    tables_format: Literal["parquet", "csv"] = "parquet"


class AnalyticsConfig(BaseModel):
    """Settings the engine itself reads; everything else is I/O plumbing."""

    time: TimeConfig = Field(default_factory=TimeConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)


class AppConfig(AnalyticsConfig):
    model_config = ConfigDict(extra="forbid")

    columns: ColumnsConfig = Field(default_factory=ColumnsConfig)
    input: InputConfig = Field(default_factory=InputConfig)
    outputs: OutputsConfig = Field(default_factory=OutputsConfig)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
TIMEZONE_ENV = "FLEET_ANALYTICS_TIMEZONE"


def _resolve_optional_path(path_value: str | None, base_dir: Path) -> str | None:
    if not path_value:
        return None
    candidate = Path(path_value)
    if candidate.is_absolute():
        return str(candidate)
    return str((base_dir / candidate).resolve())


def load_config(path: Path) -> AppConfig:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    env_timezone = os.getenv(TIMEZONE_ENV)
    if env_timezone:
        time_section = dict(data.get("time") or {})
        time_section["timezone"] = env_timezone
        data["time"] = time_section

    config = AppConfig.model_validate(data)
    base_dir = path.resolve().parent

    config.input.vehicles_path = _resolve_optional_path(config.input.vehicles_path, base_dir)
    config.input.maintenance_path = _resolve_optional_path(
        config.input.maintenance_path,
        base_dir,
    )
    config.input.downtime_path = _resolve_optional_path(config.input.downtime_path, base_dir)
    return config
