"""
Tests for employee, department, office and overall rankings.

Scenario: Alice (Sales) completed 4/4 tasks in week 10, Bob (Sales)
1/4 in week 9 and 3/4 in week 10, Carol (Tech) 19/20 in week 10.
"""

import pytest

from weeklyreport.errors import ForbiddenError, ValidationError
from weeklyreport.models.user import UserRole
from weeklyreport.services import ranking_service
from weeklyreport.utils.week import WorkWeek

WEEK = WorkWeek(2024, 10)


class TestRankings:
    """Period aggregation and ordering."""

    @pytest.fixture(autouse=True)
    def _setup(self, org):
        self.office = org.office(name="HQ")
        self.sales = org.department(self.office, name="Phòng Kinh doanh")
        self.tech = org.department(self.office, name="Phòng Kỹ thuật")
        self.admin = org.staff(
            self.sales, level=1, role=UserRole.ADMIN.value, is_reportable=False
        )
        self.alice = org.staff(self.sales)
        self.bob = org.staff(self.sales)
        self.carol = org.staff(self.tech)
        org.report(self.alice, WEEK, completed=4, total=4)
        org.report(self.bob, WEEK.previous(), completed=1, total=4)
        org.report(self.bob, WEEK, completed=3, total=4)
        org.report(self.carol, WEEK, completed=19, total=20)

    def _performance(self, result, user):
        for entry in result["employees"]:
            if entry["employee"]["id"] == user.id:
                return entry["performance"]
        raise AssertionError(f"user {user.id} missing from ranking")

    def test_employee_ranking_over_period(self):
        """Rates accumulate tasks across every report in the period."""
        result = ranking_service.get_employee_ranking(self.admin, WEEK, period_weeks=2)
        bob = self._performance(result, self.bob)
        assert bob["totalReports"] == 2
        assert bob["completionRate"] == 50
        assert bob["ranking"] == "FAIL"
        assert self._performance(result, self.carol)["ranking"] == "GOOD"
        summary = result["summary"]
        assert summary["totalEmployees"] == 3
        assert summary["averageCompletionRate"] == 84
        assert summary["topPerformers"] == 1
        assert summary["needsImprovement"] == 1
        assert result["filters"]["from"]["weekNumber"] == 9

    def test_single_week_period(self):
        """A one-week period ignores older reports."""
        result = ranking_service.get_employee_ranking(self.admin, WEEK, period_weeks=1)
        assert self._performance(result, self.bob)["completionRate"] == 75

    def test_default_period_from_config(self):
        """Without periodWeeks the configured default applies."""
        result = ranking_service.get_employee_ranking(self.admin, WEEK)
        assert result["filters"]["periodWeeks"] == 4

    def test_invalid_period(self):
        """Periods below one week are rejected."""
        with pytest.raises(ValidationError):
            ranking_service.get_employee_ranking(self.admin, WEEK, period_weeks=0)

    def test_invisible_employee(self):
        """A plain user cannot rank a colleague."""
        with pytest.raises(ForbiddenError):
            ranking_service.get_employee_ranking(self.alice, WEEK, employee_id=self.bob.id)

    def test_department_ranking(self):
        """Departments are ordered best first with 1-based ranks."""
        result = ranking_service.get_department_ranking(self.admin, WEEK, period_weeks=2)
        ranked = result["departments"]
        assert [(d["name"], d["rank"]) for d in ranked] == [
            ("Phòng Kỹ thuật", 1),
            ("Phòng Kinh doanh", 2),
        ]
        sales = ranked[1]
        assert sales["stats"]["averageCompletionRate"] == 67
        assert [e["employee"]["id"] for e in sales["topPerformers"]] == [self.alice.id]
        assert [e["employee"]["id"] for e in sales["needsImprovement"]] == [self.bob.id]
        summary = result["summary"]
        assert summary["totalDepartments"] == 2
        assert summary["bestPerforming"]["id"] == self.tech.id
        assert summary["averageCompletionRate"] == 84
        assert summary["needsImprovementCount"] == 1

    def test_office_ranking(self):
        """Each office lists its departments."""
        result = ranking_service.get_office_ranking(self.admin, WEEK, period_weeks=2)
        office = result["offices"][0]
        assert office["rank"] == 1
        assert office["stats"]["totalUsers"] == 3
        assert len(office["departments"]) == 2
        assert {d["id"] for d in office["departments"]} == {self.sales.id, self.tech.id}
        assert result["summary"]["averageCompletionRate"] == 84
        assert result["summary"]["totalEmployees"] == 3

    def test_overall_ranking_admin_only(self):
        """Only administrators see the company-wide ranking."""
        result = ranking_service.get_overall_ranking(self.admin, WEEK, period_weeks=2)
        assert result["overall"]["averageCompletionRate"] == 84
        assert result["officeRankings"][0]["id"] == self.office.id
        with pytest.raises(ForbiddenError):
            ranking_service.get_overall_ranking(self.alice, WEEK)
