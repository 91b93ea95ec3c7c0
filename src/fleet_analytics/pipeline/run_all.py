from __future__ import annotations

import logging
from pathlib import Path

from fleet_analytics.config import AppConfig
from fleet_analytics.io.read import load_collection
from fleet_analytics.io.write import write_snapshot
from fleet_analytics.paths import build_output_paths
from fleet_analytics.pipeline.snapshot import compute_analytics
from fleet_analytics.report.contracts import AnalyticsSnapshot

LOGGER = logging.getLogger(__name__)


def _optional_path(value: str | None) -> Path | None:
    return Path(value) if value else None


def analyze_files(config: AppConfig, *, now: str | None = None) -> AnalyticsSnapshot:
    """Load the configured collections from disk and compute one snapshot."""
    if not config.input.vehicles_path:
        raise ValueError("input.vehicles_path must be set")
    if not config.input.maintenance_path:
        raise ValueError("input.maintenance_path must be set")

    vehicles = load_collection(_optional_path(config.input.vehicles_path))
    maintenance = load_collection(_optional_path(config.input.maintenance_path))
    downtime = load_collection(_optional_path(config.input.downtime_path))
    return compute_analytics(
        vehicles,
        maintenance,
        downtime,
        now=now,
        config=config,
        aliases=config.columns.model_dump(),
    )


def run_all(config: AppConfig, out_dir: Path, *, now: str | None = None) -> Path:
    snapshot = analyze_files(config, now=now)
    paths = build_output_paths(out_dir)
    written = write_snapshot(snapshot, paths, fmt=config.outputs.tables_format)
    LOGGER.info("Wrote %d analytics outputs to %s", len(written), paths.root)
    return written["snapshot"]
