"""
Tests for the administrative statistics.
"""

import pytest

from weeklyreport.services import statistics_service
from weeklyreport.utils.week import WorkWeek

WEEK = WorkWeek(2024, 10)


class TestStatistics:
    """Three reporting users, one missing, one empty department."""

    @pytest.fixture(autouse=True)
    def _setup(self, org):
        office = org.office(name="HQ")
        self.sales = org.department(office, name="Phòng Kinh doanh")
        self.tech = org.department(office, name="Phòng Kỹ thuật")
        self.empty = org.department(office, name="Phòng Trống")
        self.alice = org.staff(self.sales)
        self.bob = org.staff(self.sales)
        self.carol = org.staff(self.tech)
        self.dave = org.staff(self.tech)
        org.staff(self.tech, is_reportable=False)
        org.report(self.alice, WEEK, completed=4, total=4)
        org.report(self.bob, WEEK, completed=3, total=4)
        org.report(self.carol, WEEK, completed=4, total=4)

    def test_overview(self):
        """Only reportable users count toward submission."""
        result = statistics_service.get_overview(WEEK)
        assert result["totalUsers"] == 4
        assert result["totalDepartments"] == 3
        assert result["currentWeek"]["submittedReports"] == 3
        assert result["currentWeek"]["pendingReports"] == 1
        assert result["currentWeek"]["submissionRate"] == 75

    def test_missing_reports(self):
        """Users without a report for the week are listed."""
        result = statistics_service.get_missing_reports(WEEK)
        assert result["totalMissing"] == 1
        assert result["users"][0]["id"] == self.dave.id

    def test_completion_rates(self):
        """Every department is listed; empty ones with zeros."""
        rates = {r["department"]["id"]: r for r in statistics_service.get_completion_rates(WEEK)}
        assert rates[self.sales.id]["submittedReports"] == 2
        assert rates[self.sales.id]["completedReports"] == 1
        assert rates[self.sales.id]["completionRate"] == 88
        assert rates[self.tech.id]["submissionRate"] == 50
        assert rates[self.empty.id]["totalUsers"] == 0

    def test_single_department(self):
        """A department filter narrows the list."""
        rates = statistics_service.get_completion_rates(WEEK, department_id=self.tech.id)
        assert len(rates) == 1
        assert rates[0]["totalUsers"] == 2

    def test_task_statistics(self):
        """Completion is counted per task name."""
        by_name = {t["taskName"]: t for t in statistics_service.get_task_statistics(WEEK)}
        assert by_name["Task 1"]["totalAssigned"] == 3
        assert by_name["Task 1"]["completionRate"] == 100
        assert by_name["Task 4"]["completed"] == 2
        assert by_name["Task 4"]["completionRate"] == 67

    def test_summary_report(self):
        """The summary bundles breakdown, missing users and task stats."""
        result = statistics_service.get_summary_report(WEEK)
        assert result["summary"]["totalMissing"] == 1
        assert result["summary"]["overallCompletionRate"] == 92
        assert len(result["departmentBreakdown"]) == 3
