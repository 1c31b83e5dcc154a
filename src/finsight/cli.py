"""Click CLI entry point for the finsight command.

Handles argument parsing, config loading, and error display. All business
logic is delegated to ``session``, ``status``, ``client``, ``filters``, and
``export`` modules.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

import click

from finsight import __version__
from finsight.models import ALL, FAILED, IDLE, TRANSACTION_TYPES, AppConfig


def _configure_logging(verbose: bool, debug: bool) -> None:
    """Set up logging based on verbosity flags."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        force=True,
    )


def _load_config_or_exit() -> AppConfig:
    """Load ``config.toml`` from the working directory or exit with an error."""
    from finsight.config import load_config

    try:
        return load_config(Path.cwd())
    except FileNotFoundError as exc:
        click.echo(
            f"Error: {exc}. Run 'finsight init' to create a configuration.",
            err=True,
        )
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error loading configuration: {exc}", err=True)
        sys.exit(1)


def _amount_bound(ctx: click.Context, param: click.Parameter, value: float | None):
    """Convert a --min/--max value to Decimal, rejecting NaN."""
    if value is None:
        return None
    amount = Decimal(str(value))
    if amount.is_nan():
        raise click.BadParameter("must be a number, not NaN")
    return amount


def _make_client(config: AppConfig):
    from finsight.client import AnalysisClient

    return AnalysisClient(base_url=config.api_base_url, timeout=config.api_timeout)


def _make_results_session(config: AppConfig, statement_id: str):
    from finsight.session import ResultsSession

    return ResultsSession(_make_client(config), statement_id, config=config)


def _load_or_exit(session) -> None:
    session.load()
    if session.error is not None:
        click.echo(f"Error: {session.error.user_message}", err=True)
        sys.exit(1)


def _echo_notifications(session) -> bool:
    """Echo all notifications; return True if any was an error."""
    failed = False
    for note in session.notifications:
        if note.level == "error":
            failed = True
            click.echo(f"Error: {note.message}", err=True)
        else:
            click.echo(note.message)
    return failed


verbose_option = click.option(
    "--verbose", is_flag=True, default=False, help="Detailed progress output."
)
debug_option = click.option(
    "--debug", is_flag=True, default=False, help="Developer-level diagnostics."
)


@click.group()
@click.version_option(version=__version__, prog_name="finsight")
def cli() -> None:
    """Upload bank statements and review their financial analysis."""


@cli.command()
@click.option(
    "--dir", "target_dir", default=".", type=click.Path(), help="Directory to initialize."
)
def init(target_dir: str) -> None:
    """Write a default config.toml."""
    from finsight.config import initialize

    target = Path(target_dir).resolve()

    try:
        path = initialize(target)
    except Exception as exc:
        click.echo(f"Error initializing configuration: {exc}", err=True)
        sys.exit(1)

    click.echo(f"Initialized FinSight configuration in {path}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@verbose_option
@debug_option
def upload(file: Path, verbose: bool, debug: bool) -> None:
    """Validate FILE, upload it, and follow the analysis to completion."""
    _configure_logging(verbose, debug)
    config = _load_config_or_exit()

    from finsight.dashboard import status_line
    from finsight.session import UploadSession
    from finsight.status import (
        ApiStatusSource,
        ApiUploader,
        ProcessingStateMachine,
        SimulatedStatusSource,
        SimulatedUploader,
    )

    client = _make_client(config)
    if config.upload_mode == "api":
        uploader = ApiUploader(client)
    else:
        uploader = SimulatedUploader(step_delay_ms=config.upload_step_delay_ms)
    if config.processing_mode == "api":
        status_source = ApiStatusSource(client)
    else:
        status_source = SimulatedStatusSource(max_duration_ms=config.max_duration_ms)

    machine = ProcessingStateMachine(
        uploader, status_source, poll_interval_ms=config.poll_interval_ms
    )
    session = UploadSession(machine, config)

    candidate = session.select_file(file)
    if candidate is None:
        click.echo(f"Error: {session.error}", err=True)
        sys.exit(1)
    click.echo(f"Selected {candidate.name} ({candidate.size_mib:.2f} MB)")

    def _show(state) -> None:
        if state.status != IDLE:
            click.echo(status_line(state))

    machine.subscribe(_show)

    try:
        state = session.analyze()
    except KeyboardInterrupt:
        session.reset()
        click.echo("Upload cancelled.", err=True)
        sys.exit(1)

    if state.status == FAILED:
        click.echo(f"Error: {state.message}", err=True)
        sys.exit(1)

    click.echo()
    click.echo(f"Statement ID: {state.statement_id}")
    click.echo(f"View results with: finsight show {state.statement_id}")


@cli.command()
@click.argument("statement_id")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the analysis as JSON.")
@verbose_option
@debug_option
def show(statement_id: str, as_json: bool, verbose: bool, debug: bool) -> None:
    """Show the analysis of STATEMENT_ID."""
    _configure_logging(verbose, debug)
    config = _load_config_or_exit()
    session = _make_results_session(config, statement_id)
    _load_or_exit(session)

    if as_json:
        click.echo(json.dumps(dataclasses.asdict(session.analysis), default=str, indent=2))
        return

    from finsight.dashboard import print_analysis

    print_analysis(session.analysis)


@cli.command()
@click.argument("statement_id")
@click.option("--search", default="", help="Case-insensitive text in the description.")
@click.option("--category", default=ALL, help="Only this category.")
@click.option(
    "--type", "txn_type", type=click.Choice(TRANSACTION_TYPES), default=ALL,
    help="Only debits or credits.",
)
@click.option(
    "--min", "amount_min", type=float, default=None, callback=_amount_bound,
    help="Lowest amount shown.",
)
@click.option(
    "--max", "amount_max", type=float, default=None, callback=_amount_bound,
    help="Highest amount shown.",
)
@click.option("--recurring", is_flag=True, default=False, help="Recurring transactions only.")
@click.option("--unusual", is_flag=True, default=False, help="Unusual transactions only.")
@click.option(
    "--list-categories", is_flag=True, default=False, help="List categories and exit."
)
@verbose_option
@debug_option
def transactions(
    statement_id: str,
    search: str,
    category: str,
    txn_type: str,
    amount_min: Decimal | None,
    amount_max: Decimal | None,
    recurring: bool,
    unusual: bool,
    list_categories: bool,
    verbose: bool,
    debug: bool,
) -> None:
    """List the transactions of STATEMENT_ID, filtered."""
    _configure_logging(verbose, debug)
    config = dataclasses.replace(_load_config_or_exit(), fetch_transactions=True)
    session = _make_results_session(config, statement_id)
    _load_or_exit(session)

    if list_categories:
        for name in session.categories():
            click.echo(name)
        return

    from finsight.dashboard import print_transactions
    from finsight.models import AdvancedFilters, AmountRange

    defaults = session.defaults
    session.search = search
    session.category = category
    session.advanced = AdvancedFilters(
        transaction_type=txn_type,
        amount_range=AmountRange(
            min=defaults.amount_range.min if amount_min is None else amount_min,
            max=defaults.amount_range.max if amount_max is None else amount_max,
        ),
        show_recurring=recurring,
        show_unusual=unusual,
    )

    print_transactions(
        session.filtered_transactions(),
        total=len(session.transactions),
        filters_active=session.has_active_filters(),
    )


@cli.command()
@click.argument("statement_id")
@click.option(
    "--format", "fmt", type=click.Choice(["pdf", "csv", "all"]), default="all",
    help="Which export to write.",
)
@click.option(
    "--output-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
    help="Directory for the exported files (default: results.export_dir).",
)
@verbose_option
@debug_option
def export(
    statement_id: str, fmt: str, output_dir: Path | None, verbose: bool, debug: bool
) -> None:
    """Export the analysis of STATEMENT_ID as a PDF report and/or CSV data."""
    _configure_logging(verbose, debug)
    config = _load_config_or_exit()
    session = _make_results_session(config, statement_id)
    _load_or_exit(session)

    target = output_dir or Path.cwd() / config.export_dir
    if fmt in ("pdf", "all"):
        session.export_pdf(target)
    if fmt in ("csv", "all"):
        session.export_csv(target)

    if _echo_notifications(session):
        sys.exit(1)


@cli.command()
@click.argument("statement_id")
@click.option("--yes", is_flag=True, default=False, help="Do not ask for confirmation.")
@verbose_option
@debug_option
def delete(statement_id: str, yes: bool, verbose: bool, debug: bool) -> None:
    """Delete STATEMENT_ID and its analysis."""
    _configure_logging(verbose, debug)
    config = _load_config_or_exit()
    session = _make_results_session(config, statement_id)

    session.request_delete()
    if not yes and not click.confirm(
        "Are you sure you want to delete this analysis? This action cannot be undone."
    ):
        session.cancel_delete()
        click.echo("Deletion cancelled.")
        return

    deleted = session.delete()
    _echo_notifications(session)
    if not deleted:
        sys.exit(1)
