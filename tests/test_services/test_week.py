"""
Tests for work-week arithmetic.

Reference dates: 2024-03-07 is a Thursday in ISO week 10; 2020 has 53
ISO weeks and 2021 has 52.
"""

from datetime import date

import pytest

from weeklyreport.utils.week import (
    WorkWeek,
    deletable_weeks,
    editable_weeks,
    format_week,
    recent_weeks,
    resolve_week,
    week_date_range,
    work_cycle_range,
    work_week_for,
)


class TestWorkWeekFor:
    """Mapping calendar days onto Friday-to-Thursday work weeks."""

    def test_thursday_stays_in_its_iso_week(self):
        """Monday to Thursday keep their ISO week number."""
        assert work_week_for(date(2024, 3, 7)) == WorkWeek(2024, 10)
        assert work_week_for(date(2024, 3, 4)) == WorkWeek(2024, 10)

    def test_friday_to_sunday_roll_forward(self):
        """Friday, Saturday and Sunday belong to the next week number."""
        for day in (8, 9, 10):
            assert work_week_for(date(2024, 3, day)) == WorkWeek(2024, 11)

    def test_year_end_rolls_into_next_year(self):
        """A Sunday at year end can already belong to week 1 of next year."""
        assert work_week_for(date(2024, 12, 29)) == WorkWeek(2025, 1)


class TestNavigation:
    """previous()/next() across year boundaries."""

    def test_fifty_three_week_year(self):
        """2020 has a week 53 that precedes 2021 week 1."""
        assert WorkWeek(2020, 52).next() == WorkWeek(2020, 53)
        assert WorkWeek(2020, 53).next() == WorkWeek(2021, 1)
        assert WorkWeek(2021, 1).previous() == WorkWeek(2020, 53)

    def test_fifty_two_week_year(self):
        """2021 week 52 is followed by 2022 week 1."""
        assert WorkWeek(2021, 52).next() == WorkWeek(2022, 1)

    def test_invalid_week_rejected(self):
        """WorkWeek.of refuses a week that does not exist."""
        with pytest.raises(ValueError):
            WorkWeek.of(53, 2021)

    def test_recent_weeks_oldest_first(self):
        """recent_weeks ends at the given week and is ordered oldest first."""
        assert recent_weeks(3, WorkWeek(2024, 2)) == [
            WorkWeek(2023, 52),
            WorkWeek(2024, 1),
            WorkWeek(2024, 2),
        ]


class TestWindows:
    """Create/edit and delete windows relative to a fixed day."""

    def test_editable_weeks(self):
        """Previous, current and next week are editable."""
        assert editable_weeks(date(2024, 3, 7)) == [
            WorkWeek(2024, 9),
            WorkWeek(2024, 10),
            WorkWeek(2024, 11),
        ]

    def test_deletable_weeks(self):
        """Only current and next week are deletable."""
        assert deletable_weeks(date(2024, 3, 7)) == [
            WorkWeek(2024, 10),
            WorkWeek(2024, 11),
        ]

    def test_resolve_week_defaults_to_current(self):
        """Missing parameters fall back to the current work week."""
        assert resolve_week(None, None, on=date(2024, 3, 8)) == WorkWeek(2024, 11)
        assert resolve_week(5, 2023, on=date(2024, 3, 8)) == WorkWeek(2023, 5)


class TestFormatWeek:
    """Display formats."""

    def test_formats(self):
        """Short, long and range formats."""
        week = WorkWeek(2024, 10)
        assert format_week(week) == "W10/2024"
        assert format_week(week, "long") == "Tuần 10 năm 2024"
        assert format_week(week, "range") == "Tuần 10/2024 (01/03/2024 - 07/03/2024)"

    def test_date_ranges(self):
        """ISO span versus the Friday-to-Thursday work cycle."""
        week = WorkWeek(2024, 10)
        assert week_date_range(week) == (date(2024, 3, 4), date(2024, 3, 10))
        assert work_cycle_range(week) == (date(2024, 3, 1), date(2024, 3, 7))
