"""
Seed script — create a development SUPERADMIN for local testing.

Registers a ``flask seed-dev-admin`` CLI command that creates (or
reactivates) a SUPERADMIN together with the minimal organization it
needs: one office, one department, one position and one job position.
Log in with the printed employee code and password through
``POST /auth/login``.

Usage::

    flask seed-dev-admin                       # Create with defaults
    flask seed-dev-admin --code ADMIN01        # Custom employee code
    flask seed-dev-admin --password secret123  # Custom password

Prerequisites:
    - The database must exist and ``flask db upgrade`` must have run.
"""

import click
from flask.cli import with_appcontext
from werkzeug.security import generate_password_hash

from weeklyreport.extensions import db
from weeklyreport.models.organization import Department, JobPosition, Office, Position
from weeklyreport.models.user import User, UserRole
from weeklyreport.services.organization_service import generate_job_position_code

# -- Default values for the dev admin user ---------------------------------
_DEFAULT_CODE = "DEVADMIN"
_DEFAULT_PASSWORD = "devadmin123"
_DEFAULT_FIRST_NAME = "Dev"
_DEFAULT_LAST_NAME = "Admin"

_OFFICE_NAME = "Văn phòng điều hành"
_DEPARTMENT_NAME = "Phòng Hành chính"
_POSITION_NAME = "Tổng giám đốc"
_JOB_NAME = "Điều hành"


def _get_or_create_org() -> JobPosition:
    """Return the seed job position, creating its chain as needed."""
    office = Office.query.filter_by(name=_OFFICE_NAME).first()
    if office is None:
        office = Office(name=_OFFICE_NAME, type="HEAD_OFFICE")
        db.session.add(office)
        db.session.flush()
        click.echo(f"      → Created office '{office.name}'.")

    department = Department.query.filter_by(
        name=_DEPARTMENT_NAME, office_id=office.id
    ).first()
    if department is None:
        department = Department(name=_DEPARTMENT_NAME, office_id=office.id)
        db.session.add(department)
        db.session.flush()
        click.echo(f"      → Created department '{department.name}'.")

    position = Position.query.filter_by(name=_POSITION_NAME).first()
    if position is None:
        position = Position(
            name=_POSITION_NAME,
            level=1,
            is_management=True,
            can_view_hierarchy=True,
            is_reportable=False,
        )
        db.session.add(position)
        db.session.flush()
        click.echo(f"      → Created position '{position.name}'.")

    job_position = JobPosition.query.filter_by(
        position_id=position.id, job_name=_JOB_NAME, department_id=department.id
    ).first()
    if job_position is None:
        job_position = JobPosition(
            job_name=_JOB_NAME,
            code=generate_job_position_code(position.name, department.name, _JOB_NAME),
            position_id=position.id,
            department_id=department.id,
            office_id=office.id,
        )
        db.session.add(job_position)
        db.session.flush()
        click.echo(f"      → Created job position '{job_position.code}'.")
    return job_position


@click.command("seed-dev-admin")
@click.option(
    "--code",
    "employee_code",
    default=_DEFAULT_CODE,
    show_default=True,
    help="Employee code for the dev admin user.",
)
@click.option(
    "--password",
    default=_DEFAULT_PASSWORD,
    show_default=True,
    help="Password for the dev admin user.",
)
@click.option("--first", "first_name", default=_DEFAULT_FIRST_NAME, show_default=True)
@click.option("--last", "last_name", default=_DEFAULT_LAST_NAME, show_default=True)
@with_appcontext
def seed_dev_admin_command(
    employee_code: str, password: str, first_name: str, last_name: str
):
    """
    Create a development SUPERADMIN for local testing.

    If a user with the given employee code already exists, the script
    ensures they are an active SUPERADMIN and resets the password.
    """
    click.echo("=" * 60)
    click.echo("  Weekly Report — Seed Dev Admin User")
    click.echo("=" * 60)

    # -- Step 1: Organization ----------------------------------------------
    click.echo("\n[1/2] Ensuring seed organization...")
    job_position = _get_or_create_org()
    click.secho("      ✓ Organization ready.", fg="green")

    # -- Step 2: Create or update the user ---------------------------------
    click.echo("\n[2/2] Creating dev admin user...")
    user = User.query.filter_by(employee_code=employee_code).first()
    if user is not None:
        click.echo(f"      User '{employee_code}' already exists (id={user.id}).")
        user.role = UserRole.SUPERADMIN.value
        user.is_active = True
        user.password_hash = generate_password_hash(password)
    else:
        user = User(
            employee_code=employee_code,
            password_hash=generate_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.SUPERADMIN.value,
            job_position_id=job_position.id,
            office_id=job_position.office_id,
            is_active=True,
        )
        db.session.add(user)
    db.session.commit()
    click.secho(f"      ✓ User ready (id={user.id}).", fg="green")

    # -- Summary -----------------------------------------------------------
    click.echo("\n" + "=" * 60)
    click.secho("  Dev admin user is ready.", fg="green", bold=True)
    click.echo(f"  Employee code: {user.employee_code}")
    click.echo(f"  Name:          {user.full_name}")
    click.echo(f"  Role:          {user.role}")
    click.echo("=" * 60)
    click.echo("\n  → POST /auth/login with this employee code and password.\n")


def register_seed_commands(app):
    """Register seed-related CLI commands with the Flask application."""
    app.cli.add_command(seed_dev_admin_command)
