"""
Custom Flask CLI commands.

These commands are registered with the app via ``register_commands()``
in the application factory. Run them with ``flask <command_name>``.

Usage::

    flask db-check                           # Verify connectivity and tables
    flask lock-reports                       # Lock the previous work week
    flask lock-reports --week 12 --year 2025 # Lock a specific week
"""

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from weeklyreport.extensions import db
from weeklyreport.services import report_service
from weeklyreport.utils.week import WorkWeek

_EXPECTED_TABLES = (
    "office",
    "department",
    "position",
    "job_position",
    "user",
    "report",
    "report_task",
    "task_evaluation",
)


@click.command("db-check")
@with_appcontext
def db_check_command():
    """
    Verify database connectivity and confirm the expected tables exist.

    Runs a trivial query against the configured database, then lists
    any application tables that are missing (run ``flask db upgrade``
    to create them).
    """
    click.echo("=" * 60)
    click.echo("  Weekly Report — Database Connectivity Check")
    click.echo("=" * 60)

    db_uri = db.engine.url.render_as_string(hide_password=True)
    click.echo(f"\n  Connection string: {db_uri}\n")

    # -- Step 1: Basic connectivity ----------------------------------------
    click.echo("[1/2] Testing connection...")
    try:
        row = db.session.execute(db.text("SELECT 1")).fetchone()
    except SQLAlchemyError as exc:
        click.secho(f"      ✗ Connection failed: {exc}", fg="red")
        click.echo("\n  Does DATABASE_URL point at a running server?")
        raise SystemExit(1)
    if not row or row[0] != 1:
        click.secho("      ✗ Unexpected result from test query.", fg="red")
        raise SystemExit(1)
    click.secho(
        f"      ✓ Connected ({db.engine.dialect.name}).", fg="green"
    )

    # -- Step 2: Tables ----------------------------------------------------
    click.echo("[2/2] Checking tables...")
    existing = set(inspect(db.engine).get_table_names())
    missing = [name for name in _EXPECTED_TABLES if name not in existing]
    if missing:
        click.secho(f"      ✗ Missing tables: {', '.join(missing)}", fg="red")
        click.echo("        Have you run `flask db upgrade`?")
        raise SystemExit(1)
    click.secho(f"      ✓ All {len(_EXPECTED_TABLES)} tables present.", fg="green")

    click.echo("\n" + "=" * 60)
    click.secho("  All checks passed. Database is ready.", fg="green", bold=True)
    click.echo("=" * 60)


@click.command("lock-reports")
@click.option("--week", "week_number", type=int, help="Work week number to lock.")
@click.option("--year", type=int, help="Year of the work week.")
@with_appcontext
def lock_reports_command(week_number: int | None, year: int | None):
    """
    Lock all reports of a work week so they can no longer be edited.

    Without options, locks the work week before the current one (the
    weekly scheduled run).  Safe to run repeatedly.
    """
    if (week_number is None) != (year is None):
        raise click.UsageError("--week and --year must be given together.")

    if week_number is None:
        week, count = report_service.lock_previous_work_week()
    else:
        try:
            week = WorkWeek.of(week_number, year)
        except ValueError as exc:
            raise click.BadParameter(str(exc)) from exc
        count = report_service.lock_reports_by_week(week.week_number, week.year)

    current_app.logger.debug("lock-reports finished for %s", week)
    click.secho(
        f"Locked {count} report(s) for week {week.week_number}/{week.year}.",
        fg="green",
    )


def register_commands(app):
    """Register all custom CLI commands with the Flask application."""
    app.cli.add_command(db_check_command)
    app.cli.add_command(lock_reports_command)
