"""CLI interface using Typer."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any, NoReturn, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import typer
import yaml
from rich.console import Console
from rich.table import Table

from healthvaults.analytics.models import MacroPercentages
from healthvaults.analytics.serialization import save_snapshot, serialize_snapshot
from healthvaults.analytics.snapshot import Snapshot, build_snapshot
from healthvaults.app_logging import configure_logging
from healthvaults.config.settings import Settings, default_config_path, parse_weekday
from healthvaults.data.sample_loader import SampleLoader

app = typer.Typer(
    help="Maintenance estimation and weekly calorie budgets from health records",
    no_args_is_help=True,
)
console = Console()

config_app = typer.Typer(help="Manage analytics configuration")
app.add_typer(config_app, name="config")


# ============================================================================
# Helpers
# ============================================================================


def output_json(response: dict, file=None) -> None:
    """Output JSON response to stdout or file."""
    json_str = json.dumps(response, indent=2)
    if file:
        file.write(json_str)
    else:
        print(json_str)


def fail(command: str, message: str, json_output: bool) -> NoReturn:
    """Report an error and exit with status 1."""
    if json_output:
        output_json({"success": False, "command": command, "errors": [message]})
    else:
        console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _fmt(value: Optional[float], digits: int = 0) -> str:
    return "-" if value is None else f"{value:.{digits}f}"


def load_snapshot_from_csv(
    command: str,
    data_path: Path,
    config_path: Optional[Path],
    date_str: Optional[str],
    timezone: Optional[str],
    json_output: bool,
    verbose: bool,
    adjustment: Optional[float] = None,
    first_weekday: Optional[str] = None,
    macro_percentages: Optional[MacroPercentages] = None,
) -> Snapshot:
    """Read settings and samples, then run one refresh."""
    try:
        settings = Settings.load(config_path)
        configure_logging("DEBUG" if verbose else settings.logging.level)
        reference_date = date.fromisoformat(date_str) if date_str else None
        tz = ZoneInfo(timezone) if timezone else None
        weekday = parse_weekday(first_weekday) if first_weekday is not None else None
        samples, _ = SampleLoader().load_from_csv(data_path)
        return build_snapshot(
            samples,
            settings=settings,
            reference_date=reference_date,
            adjustment=adjustment,
            macro_percentages=macro_percentages,
            first_weekday=weekday,
            tz=tz,
        )
    except ZoneInfoNotFoundError:
        fail(command, f"Unknown timezone '{timezone}'", json_output)
    except yaml.YAMLError as e:
        fail(command, f"Invalid config file: {e}", json_output)
    except ValueError as e:
        fail(command, str(e), json_output)


DataArgument = typer.Argument(
    ..., exists=True, dir_okay=False, help="CSV with timestamp,kind,value columns"
)
ConfigOption = typer.Option(None, "--config", "-c", help="Path to config.yaml")
DateOption = typer.Option(None, "--date", "-d", help="Reference date (YYYY-MM-DD, default: today)")
TimezoneOption = typer.Option(None, "--timezone", "--tz", help="IANA timezone for day boundaries")
JsonOption = typer.Option(False, "--json", help="Output as JSON")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
AdjustmentOption = typer.Option(
    None, "--adjustment", "-a", help="Daily calorie adjustment (kcal, negative for deficit)"
)


# ============================================================================
# Analytics Commands
# ============================================================================


@app.command("maintenance")
def maintenance(
    data_path: Path = DataArgument,
    config_path: Optional[Path] = ConfigOption,
    date_str: Optional[str] = DateOption,
    timezone: Optional[str] = TimezoneOption,
    json_output: bool = JsonOption,
    verbose: bool = VerboseOption,
) -> None:
    """Estimate maintenance calories from intake and weight trends."""
    snapshot = load_snapshot_from_csv(
        "maintenance", data_path, config_path, date_str, timezone, json_output, verbose
    )
    estimator = snapshot.maintenance

    if json_output:
        output_json({
            "success": True,
            "command": "maintenance",
            "data": {
                "maintenance_kcal": round(estimator.maintenance, 0),
                "raw_maintenance_kcal": round(estimator.raw_maintenance, 0),
                "fallback_kcal": round(estimator.fallback_maintenance, 0),
                "weight_confidence": round(estimator.confidence, 3),
                "calorie_confidence": round(estimator.calories.confidence, 3),
                "weight_slope_kg_per_week": round(estimator.weight_slope, 3),
                "raw_weight_slope_kg_per_week": round(estimator.raw_weight_slope, 3),
                "rho_kcal_per_kg": round(estimator.rho, 0),
                "body_fat_used": estimator.body_fat_percentage_used,
                "is_valid": estimator.is_valid,
            },
            "human_summary": f"Maintenance: {estimator.maintenance:.0f} kcal/day "
            f"(confidence {estimator.confidence:.0%})",
        })
        return

    table = Table(title=f"Maintenance Estimate ({estimator.reference_date})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Maintenance", f"{estimator.maintenance:.0f} kcal/day")
    table.add_row("Raw (unblended)", f"{estimator.raw_maintenance:.0f} kcal/day")
    table.add_row("Fallback", f"{estimator.fallback_maintenance:.0f} kcal/day")
    table.add_row("Weight confidence", f"{estimator.confidence:.0%}")
    table.add_row("Calorie confidence", f"{estimator.calories.confidence:.0%}")
    table.add_row("Weight trend", f"{estimator.weight_slope:+.2f} kg/week")
    table.add_row("Raw weight trend", f"{estimator.raw_weight_slope:+.2f} kg/week")
    table.add_row("Energy density", f"{estimator.rho:.0f} kcal/kg")
    console.print(table)
    if not estimator.is_valid:
        console.print("[yellow]Not enough recent data; estimate leans on the fallback.[/yellow]")


@app.command("budget")
def budget(
    data_path: Path = DataArgument,
    adjustment: Optional[float] = AdjustmentOption,
    first_weekday: Optional[str] = typer.Option(
        None, "--first-weekday", "-w", help="Day the weekly cycle starts (e.g. monday)"
    ),
    config_path: Optional[Path] = ConfigOption,
    date_str: Optional[str] = DateOption,
    timezone: Optional[str] = TimezoneOption,
    json_output: bool = JsonOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show the weekly credit and today's calorie budget."""
    snapshot = load_snapshot_from_csv(
        "budget", data_path, config_path, date_str, timezone, json_output, verbose,
        adjustment=adjustment, first_weekday=first_weekday,
    )
    engine = snapshot.budget

    if json_output:
        output_json({
            "success": True,
            "command": "budget",
            "data": {
                "base_budget_kcal": round(engine.base_budget, 0),
                "credit_kcal": round(engine.credit, 0),
                "daily_adjustment_kcal": round(engine.daily_adjustment, 0),
                "budget_kcal": round(engine.budget, 0),
                "remaining_kcal": round(engine.remaining, 0),
                "days_logged": engine.days_logged,
                "days_elapsed": engine.days_elapsed,
                "days_left": engine.days_left,
                "cycle_start": engine.cycle_start.isoformat(),
            },
            "human_summary": f"Budget: {engine.budget:.0f} kcal today, "
            f"{engine.remaining:.0f} remaining (credit {engine.credit:+.0f})",
        })
        return

    table = Table(title=f"Weekly Budget (cycle from {engine.cycle_start})")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Base budget", f"{engine.base_budget:.0f} kcal")
    table.add_row("Credit", f"{engine.credit:+.0f} kcal")
    table.add_row("Logged days", f"{engine.days_logged} of {engine.days_elapsed}")
    table.add_row("Days left", str(engine.days_left))
    table.add_row("Daily adjustment", f"{engine.daily_adjustment:+.0f} kcal")
    table.add_row("Today's budget", f"[bold]{engine.budget:.0f} kcal[/bold]")
    table.add_row("Remaining", f"{engine.remaining:.0f} kcal")
    console.print(table)


@app.command("macros")
def macros(
    data_path: Path = DataArgument,
    protein: Optional[float] = typer.Option(None, "--protein", "-p", help="Protein share (%)"),
    carbs: Optional[float] = typer.Option(None, "--carbs", help="Carbohydrate share (%)"),
    fat: Optional[float] = typer.Option(None, "--fat", "-f", help="Fat share (%)"),
    adjustment: Optional[float] = AdjustmentOption,
    config_path: Optional[Path] = ConfigOption,
    date_str: Optional[str] = DateOption,
    timezone: Optional[str] = TimezoneOption,
    json_output: bool = JsonOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show daily macro-nutrient targets in grams."""
    try:
        percentages = MacroPercentages(protein=protein, carbs=carbs, fat=fat)
    except ValueError as e:
        fail("macros", str(e), json_output)

    snapshot = load_snapshot_from_csv(
        "macros", data_path, config_path, date_str, timezone, json_output, verbose,
        adjustment=adjustment, macro_percentages=percentages,
    )
    summary = snapshot.summary
    rows = [
        ("Protein", summary.protein_budget, summary.protein_remaining),
        ("Carbs", summary.carbs_budget, summary.carbs_remaining),
        ("Fat", summary.fat_budget, summary.fat_remaining),
    ]

    if json_output:
        data: dict[str, Any] = {}
        for name, target, left in rows:
            data[name.lower()] = {
                "budget_g": None if target is None else round(target, 1),
                "remaining_g": None if left is None else round(left, 1),
            }
        output_json({
            "success": True,
            "command": "macros",
            "data": data,
            "human_summary": ", ".join(
                f"{name}: {_fmt(target)} g" for name, target, _ in rows
            ),
        })
        return

    table = Table(title=f"Macro Budgets (base {summary.base_budget:.0f} kcal)")
    table.add_column("Macro", style="cyan")
    table.add_column("Budget (g)", justify="right")
    table.add_column("Remaining (g)", justify="right")
    for name, target, left in rows:
        table.add_row(name, _fmt(target), _fmt(left))
    console.print(table)


@app.command("snapshot")
def snapshot(
    data_path: Path = DataArgument,
    output: Path = typer.Option(..., "--output", "-o", help="JSON file to write"),
    adjustment: Optional[float] = AdjustmentOption,
    config_path: Optional[Path] = ConfigOption,
    date_str: Optional[str] = DateOption,
    timezone: Optional[str] = TimezoneOption,
    json_output: bool = JsonOption,
    verbose: bool = VerboseOption,
) -> None:
    """Compute all outputs and cache them as a JSON snapshot."""
    result = load_snapshot_from_csv(
        "snapshot", data_path, config_path, date_str, timezone, json_output, verbose,
        adjustment=adjustment,
    )
    save_snapshot(result.summary, output)

    if json_output:
        output_json({
            "success": True,
            "command": "snapshot",
            "data": serialize_snapshot(result.summary),
            "human_summary": f"Snapshot written to {output}",
        })
    else:
        console.print(f"[green]Snapshot written to[/green] {output}")


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show(
    config_path: Optional[Path] = ConfigOption,
    json_output: bool = JsonOption,
) -> None:
    """Show the effective configuration."""
    try:
        settings = Settings.load(config_path)
    except yaml.YAMLError as e:
        fail("config show", f"Invalid config file: {e}", json_output)
    except ValueError as e:
        fail("config show", str(e), json_output)

    if json_output:
        output_json({"success": True, "command": "config show", "data": settings.to_dict()})
        return

    for section, values in settings.to_dict().items():
        table = Table(title=section)
        table.add_column("Key", style="cyan")
        table.add_column("Value", justify="right")
        for key, value in values.items():
            table.add_row(key, str(value))
        console.print(table)


@config_app.command("init")
def config_init(
    path: Optional[Path] = typer.Option(None, "--path", help="Where to write config.yaml"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write a config file with default values."""
    target = path or default_config_path()
    if target.exists() and not force:
        console.print(f"[yellow]{target} already exists (use --force to overwrite)[/yellow]")
        raise typer.Exit(1)
    Settings().save(target)
    console.print(f"[green]Wrote default configuration to[/green] {target}")


if __name__ == "__main__":
    app()
