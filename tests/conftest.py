"""
Pytest configuration and shared fixtures.

Provides a test application, a fresh database for every test, a test
client, and an ``org`` factory for building offices, departments,
positions, users and reports.  The ``testing`` configuration uses an
in-memory SQLite database, so nothing needs to exist beforehand.
"""

import pytest
from werkzeug.security import generate_password_hash

from weeklyreport import create_app
from weeklyreport.extensions import db as _db
from weeklyreport.models.organization import Department, JobPosition, Office, Position
from weeklyreport.models.report import WEEKDAYS, Report, ReportTask
from weeklyreport.models.user import User, UserRole
from weeklyreport.services import auth_service

DEFAULT_PASSWORD = "secret123"


@pytest.fixture(scope="session")
def app():
    """
    Create a Flask application configured for testing.

    The app is created once per test session.  Each test gets its own
    application context from ``db_session`` so nothing cached on ``g``
    survives from one test to the next.
    """
    yield create_app("testing")


@pytest.fixture(scope="session")
def database(app):  # pylint: disable=redefined-outer-name,unused-argument
    """Provide the SQLAlchemy database instance."""
    yield _db


@pytest.fixture(scope="function")
def db_session(app, database):  # pylint: disable=redefined-outer-name
    """
    Provide a clean database inside a fresh app context for each test.

    Tables are created before the test and dropped afterwards, so data
    committed by the code under test never leaks between tests.
    """
    with app.app_context():
        database.create_all()

        yield database.session

        database.session.remove()
        database.drop_all()


@pytest.fixture(scope="function")
def client(app, db_session):  # pylint: disable=redefined-outer-name,unused-argument
    """
    Provide a Flask test client for making HTTP requests.

    Requests reuse the test's app context, and Flask-Login caches the
    resolved user on ``g``, so each test should authenticate as a
    single user.
    """
    with app.test_client() as test_client:
        yield test_client


class OrgFactory:
    """Builds committed organization, user and report rows for tests."""

    def __init__(self, session):
        self.session = session
        self._counter = 0

    def _next(self) -> int:
        self._counter += 1
        return self._counter

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        return obj

    def office(self, name=None, type="HEAD_OFFICE"):
        return self._save(Office(name=name or f"Office {self._next()}", type=type))

    def department(self, office, name=None):
        return self._save(
            Department(name=name or f"Phòng {self._next()}", office_id=office.id)
        )

    def position(
        self,
        level,
        name=None,
        is_management=False,
        can_view_hierarchy=False,
        is_reportable=True,
    ):
        return self._save(
            Position(
                name=name or f"Position L{level} #{self._next()}",
                level=level,
                is_management=is_management,
                can_view_hierarchy=can_view_hierarchy,
                is_reportable=is_reportable,
            )
        )

    def job_position(self, position, department, job_name=None):
        return self._save(
            JobPosition(
                job_name=job_name or f"Job {self._next()}",
                code=f"JP{self._counter}",
                position_id=position.id,
                department_id=department.id,
                office_id=department.office_id,
            )
        )

    def user(self, job_position, role=UserRole.USER.value, first_name=None, **extra):
        number = self._next()
        return self._save(
            User(
                employee_code=f"EMP{number:04d}",
                password_hash=generate_password_hash(DEFAULT_PASSWORD),
                first_name=first_name or f"User{number}",
                last_name=extra.pop("last_name", "Test"),
                role=role,
                job_position_id=job_position.id,
                office_id=job_position.office_id,
                **extra,
            )
        )

    def staff(self, department, level=7, role=UserRole.USER.value, **position_flags):
        """Shortcut: a new position and job position with one user in it."""
        position = self.position(level, **position_flags)
        return self.user(self.job_position(position, department), role=role)

    def report(self, user, week, completed=0, total=0, is_locked=False, reason="Bận"):
        """Report for ``week`` with ``completed`` of ``total`` tasks done."""
        report = Report(
            user_id=user.id,
            week_number=week.week_number,
            year=week.year,
            is_locked=is_locked,
        )
        for index in range(total):
            done = index < completed
            task = ReportTask(
                task_name=f"Task {index + 1}",
                is_completed=done,
                reason_not_done=None if done else reason,
            )
            setattr(task, WEEKDAYS[index % len(WEEKDAYS)], True)
            report.tasks.append(task)
        report.is_completed = total > 0 and completed == total
        return self._save(report)


@pytest.fixture(scope="function")
def org(db_session):  # pylint: disable=redefined-outer-name
    """Factory for committed test data."""
    return OrgFactory(db_session)


@pytest.fixture(scope="function")
def auth_headers(db_session):  # pylint: disable=redefined-outer-name,unused-argument
    """Return a function building a bearer Authorization header for a user."""

    def _headers(user):
        return {"Authorization": f"Bearer {auth_service.create_access_token(user)}"}

    return _headers
