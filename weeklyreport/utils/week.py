"""
Work-week arithmetic.

A work week runs Friday through Thursday.  It is numbered by the ISO
week that contains its Monday–Thursday reporting period, so a Friday,
Saturday or Sunday already belongs to the *next* ISO week number.
Week rollover uses ``date.fromisocalendar`` so years with 53 ISO weeks
are handled without special cases.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from flask import current_app, has_app_context

FRIDAY = 4


@dataclass(frozen=True, order=True)
class WorkWeek:
    """A (year, week_number) pair; ordering follows the calendar."""

    year: int
    week_number: int

    @classmethod
    def of(cls, week_number: int, year: int) -> "WorkWeek":
        """Build a validated week, raising ``ValueError`` if it does not exist."""
        date.fromisocalendar(year, week_number, 1)
        return cls(year=year, week_number=week_number)

    @property
    def monday(self) -> date:
        return date.fromisocalendar(self.year, self.week_number, 1)

    def previous(self) -> "WorkWeek":
        return work_week_of_iso_date(self.monday - timedelta(days=7))

    def next(self) -> "WorkWeek":
        return work_week_of_iso_date(self.monday + timedelta(days=7))

    def shift(self, weeks: int) -> "WorkWeek":
        return work_week_of_iso_date(self.monday + timedelta(weeks=weeks))

    def as_dict(self) -> dict:
        return {"weekNumber": self.week_number, "year": self.year}


def work_week_of_iso_date(day: date) -> WorkWeek:
    iso = day.isocalendar()
    return WorkWeek(year=iso[0], week_number=iso[1])


def work_week_for(day: date) -> WorkWeek:
    """Return the work week a calendar day belongs to."""
    if day.weekday() >= FRIDAY:
        day = day + timedelta(days=7 - day.weekday())
    return work_week_of_iso_date(day)


def today() -> date:
    """Return today's date in the configured report time zone."""
    tz_name = "UTC"
    if has_app_context():
        tz_name = current_app.config.get("REPORT_TIMEZONE", "UTC")
    return datetime.now(ZoneInfo(tz_name)).date()


def current_work_week(on: date | None = None) -> WorkWeek:
    return work_week_for(on or today())


def resolve_week(
    week_number: int | None, year: int | None, on: date | None = None
) -> WorkWeek:
    """
    Resolve optional request parameters to a concrete week.

    Missing values fall back to the current work week.  An impossible
    combination (e.g. week 53 of a 52-week year) raises ``ValueError``.
    """
    current = current_work_week(on)
    return WorkWeek.of(week_number or current.week_number, year or current.year)


def week_date_range(week: WorkWeek) -> tuple[date, date]:
    """Return the ISO Monday..Sunday span of a week."""
    return week.monday, week.monday + timedelta(days=6)


def work_cycle_range(week: WorkWeek) -> tuple[date, date]:
    """Return the Friday..Thursday work cycle that a week number denotes."""
    return week.monday - timedelta(days=3), week.monday + timedelta(days=3)


def editable_weeks(on: date | None = None) -> list[WorkWeek]:
    """Weeks a user may create or edit a report for: previous, current, next."""
    current = current_work_week(on)
    return [current.previous(), current, current.next()]


def deletable_weeks(on: date | None = None) -> list[WorkWeek]:
    """Weeks a user may delete their own report for: current and next."""
    current = current_work_week(on)
    return [current, current.next()]


def recent_weeks(count: int, end: WorkWeek) -> list[WorkWeek]:
    """Return ``count`` consecutive weeks ending at ``end``, oldest first."""
    return [end.shift(-offset) for offset in range(count - 1, -1, -1)]


def format_week(week: WorkWeek, fmt: str = "short") -> str:
    if fmt == "long":
        return f"Tuần {week.week_number} năm {week.year}"
    if fmt == "range":
        start, end = work_cycle_range(week)
        return (
            f"Tuần {week.week_number}/{week.year} "
            f"({start:%d/%m/%Y} - {end:%d/%m/%Y})"
        )
    return f"W{week.week_number}/{week.year}"
