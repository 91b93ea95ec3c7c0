from __future__ import annotations

from pathlib import Path

import typer

from fleet_analytics.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from fleet_analytics.logging import configure_logging
from fleet_analytics.pipeline.run_all import analyze_files, run_all

app = typer.Typer(no_args_is_help=True, add_completion=False)


def _load_app_config(config_path: Path) -> AppConfig:
    return load_config(config_path)


def _apply_input_overrides(
    cfg: AppConfig,
    vehicles: Path | None,
    maintenance: Path | None,
    downtime: Path | None,
) -> AppConfig:
    if vehicles is not None:
        cfg.input.vehicles_path = str(vehicles)
    if maintenance is not None:
        cfg.input.maintenance_path = str(maintenance)
    if downtime is not None:
        cfg.input.downtime_path = str(downtime)
    if not cfg.input.vehicles_path or not cfg.input.maintenance_path:
        raise typer.BadParameter(
            "Missing --vehicles/--maintenance. "
            "Pass them explicitly or set input.vehicles_path and input.maintenance_path "
            "in the config file."
        )
    return cfg


@app.command()
def analyze(
    vehicles: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    maintenance: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    downtime: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    out: Path = typer.Option(Path("out"), resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    as_of: str | None = typer.Option(
        None,
        help="Evaluate as of this ISO timestamp instead of the current time.",
    ),
) -> None:
    """Compute the fleet analytics snapshot and write summary and tables to out/."""
    configure_logging()
    cfg = _apply_input_overrides(_load_app_config(config), vehicles, maintenance, downtime)
    try:
        snapshot_path = run_all(cfg, out, now=as_of)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"Analytics complete. Snapshot: {snapshot_path}")


@app.command()
def summary(
    vehicles: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    maintenance: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    downtime: Path | None = typer.Option(None, exists=True, readable=True, resolve_path=True),
    config: Path = typer.Option(DEFAULT_CONFIG_PATH, exists=True, readable=True, resolve_path=True),
    as_of: str | None = typer.Option(None),
    top: int = typer.Option(5, min=1, help="Vehicles to list per ranking."),
) -> None:
    """Print headline fleet metrics and insights without writing files."""
    configure_logging()
    cfg = _apply_input_overrides(_load_app_config(config), vehicles, maintenance, downtime)
    try:
        snapshot = analyze_files(cfg, now=as_of)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo(f"- vehicles: {snapshot.vehicle_count}")
    typer.echo(f"- fleet_utilization: {snapshot.fleet_utilization:.1f}%")
    typer.echo(f"- total_maintenance_cost: {snapshot.total_maintenance_cost:.2f}")
    typer.echo(f"- average_cost_per_vehicle: {snapshot.average_cost_per_vehicle:.2f}")
    typer.echo("Reliability:")
    for entry in snapshot.vehicle_reliability[:top]:
        typer.echo(f"- {entry.vehicle_name}: {entry.score:.1f} ({entry.band})")
    typer.echo("Cost per distance unit:")
    for entry in snapshot.vehicle_performance[:top]:
        typer.echo(f"- {entry.vehicle_name}: {entry.cost_per_distance_unit:.4f}")
    typer.echo("Insights:")
    for insight in snapshot.insights:
        typer.echo(f"- {insight.message}")


if __name__ == "__main__":
    app()
