"""
Command-line interface for CLIMB.

Provides commands for importing data snapshots, running the
incrementality analysis and managing configuration.
"""

import json
import logging
import re

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from typing import Any

import click

from pydantic import ValidationError

from climb.analysis.service import IncrementalityService
from climb.analysis.types import SegmentAnalysis
from climb.config import (
    get_analysis_settings,
    get_config_path,
    get_database_path,
    load_config,
    set_config_value,
)
from climb.constants import SegmentKey
from climb.database.repository import SnapshotRepository, load_snapshot_file
from climb.database.session import init_database, session_scope
from climb.logging_config import setup_logging
from climb.utils.formatting import format_count, format_lag, format_ratio

logger = logging.getLogger(__name__)

try:
    __version__ = get_version("climb")
except PackageNotFoundError:
    __version__ = "dev"

_MONTH = re.compile(r"^\d{4}-\d{2}$")


def _validate_month(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> str | None:
    if value is not None and not _MONTH.match(value):
        raise click.BadParameter("expected YYYY-MM")
    return value


def _open_store(ctx: click.Context) -> None:
    database: str = ctx.obj["database"] or get_database_path()
    try:
        init_database(database)
    except (PermissionError, ValueError) as e:
        raise click.ClickException(f"Cannot open database {database}: {e}") from e


@click.group()
@click.version_option(__version__, prog_name="climb")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.option(
    "--database",
    type=click.Path(dir_okay=False),
    default=None,
    help="SQLite database path (default: from config or ~/.climb/climb.db)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, database: str | None) -> None:
    """CLIMB: clinic listing incrementality analysis."""
    setup_logging(verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj["database"] = database


@cli.command("import-snapshot")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--append", is_flag=True, help="Keep existing records")
@click.pass_context
def import_snapshot(ctx: click.Context, path: str, append: bool) -> None:
    """Import a snapshot JSON file into the store."""
    try:
        snapshot = load_snapshot_file(path)
    except ValidationError as e:
        raise click.ClickException(
            f"{path} is not a valid snapshot ({e.error_count()} errors)"
        ) from e
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path} is not valid JSON: {e}") from e

    _open_store(ctx)
    with session_scope() as session:
        stats = SnapshotRepository(session).save(snapshot, replace=not append)

    click.echo(
        f"Imported {path}: {stats.reservations} reservations, "
        f"{stats.karte_records} visits, {stats.listing_entries} listing rows, "
        f"{stats.survey_entries} survey rows"
    )


def _print_analysis(result: SegmentAnalysis, top: int) -> None:
    summary = result.summary
    period = f"{result.start_month or '…'} – {result.end_month or '…'}"

    click.echo(f"Segment: {result.segment.value}   Period: {period}")
    click.echo("=" * 60)
    click.echo(f"Verdict:               [{summary.effect.badge}] {summary.effect.headline}")
    click.echo(f"True first visits:     {format_count(summary.total_true_first)}")
    click.echo(f"Listing conversions:   {format_count(summary.total_listing_cv)}")
    click.echo(f"Google survey answers: {format_count(summary.total_survey_google)}")
    click.echo(f"CV → first visit:      {format_ratio(summary.cv_to_true_first_ratio)}")
    click.echo(f"Google coverage:       {format_ratio(summary.google_coverage_ratio)}")
    click.echo(
        f"Peak lag:              {format_lag(summary.peak_lag)}"
        + (f" [{summary.peak_strength}]" if summary.peak_strength else "")
    )

    if result.distributed_lag:
        fit = result.distributed_lag
        click.echo(
            f"Lift per CV:           {fit.total_effect:.2f} "
            f"(R²={fit.r_squared:.2f}, rows={fit.sample_size}, window={fit.max_lag}h)"
        )
    else:
        click.echo("Lift per CV:           — (not enough data for regression)")

    if summary.top_lag_contributions:
        weights = ", ".join(
            f"{item.lag}h {item.coefficient:+.2f}"
            for item in summary.top_lag_contributions
        )
        click.echo(f"Main lag weights:      {weights}")

    if result.lag_correlations and top > 0:
        click.echo("\nStrongest lags:")
        for point in result.lag_correlations[:top]:
            click.echo(f"  {format_lag(point)}")


@cli.command()
@click.option(
    "--segment",
    type=click.Choice([key.value for key in SegmentKey]),
    default=SegmentKey.ALL.value,
    show_default=True,
)
@click.option("--start-month", callback=_validate_month, help="YYYY-MM (inclusive)")
@click.option("--end-month", callback=_validate_month, help="YYYY-MM (inclusive)")
@click.option("--lag-window", type=click.IntRange(min=0), help="Hours swept each way")
@click.option(
    "--regression-window", type=click.IntRange(min=0), help="Hours of lag history"
)
@click.option("--top", type=click.IntRange(min=0), default=5, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON")
@click.pass_context
def analyze(
    ctx: click.Context,
    segment: str,
    start_month: str | None,
    end_month: str | None,
    lag_window: int | None,
    regression_window: int | None,
    top: int,
    as_json: bool,
) -> None:
    """Run the incrementality analysis on the stored snapshot."""
    if start_month and end_month and start_month > end_month:
        raise click.BadParameter("--start-month is after --end-month")

    settings = get_analysis_settings()
    service = IncrementalityService(
        lag_correlation_window=(
            lag_window if lag_window is not None else settings.lag_correlation_window
        ),
        distributed_lag_window=(
            regression_window
            if regression_window is not None
            else settings.distributed_lag_window
        ),
    )

    _open_store(ctx)
    with session_scope() as session:
        snapshot = SnapshotRepository(session).load()

    if snapshot.is_empty:
        raise click.ClickException(
            "No data in store. Import first: climb import-snapshot <file>"
        )

    result = service.analyze(snapshot, segment, start_month, end_month)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
    else:
        _print_analysis(result, top)


@cli.group()
def db() -> None:
    """Database management commands."""


@db.command("stats")
@click.pass_context
def db_stats(ctx: click.Context) -> None:
    """Show record counts in the store."""
    _open_store(ctx)
    with session_scope() as session:
        stats = SnapshotRepository(session).stats()

    click.echo(f"Reservations:    {stats.reservations}")
    click.echo(f"Karte records:   {stats.karte_records}")
    click.echo(f"Listing rows:    {stats.listing_entries}")
    click.echo(f"Survey rows:     {stats.survey_entries}")


@cli.group()
def config() -> None:
    """Configuration commands."""


@config.command("show")
def config_show() -> None:
    """Show the configuration file contents."""
    click.echo(f"Config file: {get_config_path()}")
    current = load_config()
    if not current:
        click.echo("(empty)")
        return
    click.echo(json.dumps(current, indent=2, ensure_ascii=False))


def _coerce(value: str) -> Any:
    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            continue
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set KEY (section.name) to VALUE."""
    try:
        set_config_value(key, _coerce(value))
    except ValueError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"Set {key} = {value}")
