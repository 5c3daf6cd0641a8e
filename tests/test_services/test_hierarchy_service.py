"""
Tests for the hierarchy drill-down views.

Scenario (week 10/2024, one department): a level-3 manager and three
staff members.  Alice completed 2/2 tasks, Bob 1/2 and Carol did not
report.  The admin's position is not reportable so it never counts.
"""

import pytest

from weeklyreport.errors import ForbiddenError, ValidationError
from weeklyreport.models.user import UserRole
from weeklyreport.services import hierarchy_service
from weeklyreport.utils.week import WorkWeek

WEEK = WorkWeek(2024, 10)


class TestHierarchyViews:
    """Visibility checks and summary numbers for each view."""

    @pytest.fixture(autouse=True)
    def _setup(self, org):
        self.office = org.office(name="HQ")
        self.department = org.department(self.office, name="Phòng Kinh doanh")
        self.admin = org.staff(
            self.department, level=1, role=UserRole.ADMIN.value, is_reportable=False
        )
        self.manager = org.staff(self.department, level=3, is_management=True)
        self.alice = org.staff(self.department)
        self.bob = org.staff(self.department)
        self.carol = org.staff(self.department)
        org.report(self.alice, WEEK, completed=2, total=2)
        org.report(self.bob, WEEK, completed=1, total=2, reason="Thiếu vật tư")

    def test_offices_overview_admin_only(self):
        """Admins get every office; others are refused."""
        result = hierarchy_service.get_offices_overview(self.admin, WEEK)
        assert result["weekNumber"] == 10
        assert result["summary"]["totalOffices"] == 1
        assert result["summary"]["totalUsers"] == 4
        assert result["summary"]["usersWithReports"] == 2
        with pytest.raises(ForbiddenError):
            hierarchy_service.get_offices_overview(self.manager, WEEK)

    def test_office_details(self):
        """Departments carry stats and their top incomplete reasons."""
        result = hierarchy_service.get_office_details(self.admin, self.office.id, WEEK)
        department = result["departments"][0]
        assert department["stats"]["totalUsers"] == 4
        assert department["stats"]["topIncompleteReasons"] == [
            {"reason": "Thiếu vật tư", "count": 1}
        ]

    def test_office_details_forbidden_for_staff(self):
        """A plain user covers no office."""
        with pytest.raises(ForbiddenError):
            hierarchy_service.get_office_details(self.alice, self.office.id, WEEK)

    def test_department_details(self):
        """Users are listed with their strict-policy stats."""
        result = hierarchy_service.get_department_details(
            self.admin, self.department.id, WEEK
        )
        assert len(result["users"]) == 4
        by_id = {entry["id"]: entry for entry in result["users"]}
        assert by_id[self.alice.id]["stats"]["ranking"] == "EXCELLENT"
        assert by_id[self.bob.id]["stats"]["ranking"] == "FAIL"

    def test_manager_reports(self):
        """Level-band subordinates with submission status."""
        result = hierarchy_service.get_manager_reports(self.manager, WEEK)
        summary = result["summary"]
        assert summary["totalSubordinates"] == 3
        assert summary["submittedReports"] == 2
        assert summary["completedReports"] == 1
        assert summary["notSubmitted"] == 1
        assert summary["reportSubmissionRate"] == 67
        assert summary["averageCompletionRate"] == 75
        status = {entry["id"]: entry["status"] for entry in result["subordinates"]}
        assert status == {
            self.alice.id: "completed",
            self.bob.id: "incomplete",
            self.carol.id: "not_submitted",
        }

    def test_manager_reports_forbidden_at_lowest_level(self):
        """Level 7 has no visible levels."""
        with pytest.raises(ForbiddenError):
            hierarchy_service.get_manager_reports(self.alice, WEEK)

    def test_user_details(self):
        """A user sees their own report analysis but not a colleague's."""
        result = hierarchy_service.get_user_details(self.alice, self.alice.id, WEEK)
        assert len(result["reports"]) == 1
        assert result["overallStats"]["taskCompletionRate"] == 100
        with pytest.raises(ForbiddenError):
            hierarchy_service.get_user_details(self.alice, self.bob.id, WEEK)

    def test_position_hierarchy_mixed(self):
        """Both partitions are present and merged."""
        result = hierarchy_service.get_position_hierarchy(self.admin, WEEK)
        assert set(result["groupSummaries"]) == {"management", "staff"}
        assert result["summary"]["totalUsers"] == 4
        assert result["positions"][0]["level"] == 3

    def test_position_hierarchy_staff_only(self):
        """A single partition view reports only that partition."""
        result = hierarchy_service.get_position_hierarchy(self.admin, WEEK, "staff")
        assert set(result["groupSummaries"]) == {"staff"}
        assert result["summary"]["totalUsers"] == 3

    def test_position_hierarchy_invalid_view(self):
        """Unknown view types are rejected."""
        with pytest.raises(ValidationError):
            hierarchy_service.get_position_hierarchy(self.admin, WEEK, "everyone")

    def test_my_view_dispatch(self):
        """Admins get the overview; plain users get their own details."""
        assert "offices" in hierarchy_service.get_my_hierarchy_view(self.admin, WEEK)
        own = hierarchy_service.get_my_hierarchy_view(self.alice, WEEK)
        assert own["user"]["id"] == self.alice.id

    def test_trends(self):
        """Trends cover the requested window, oldest week first."""
        result = hierarchy_service.get_task_completion_trends(self.admin, WEEK, weeks=3)
        assert [t["weekNumber"] for t in result["trends"]] == [8, 9, 10]
        assert result["trends"][-1]["submissionRate"] == 50
        assert result["trends"][0]["totalReports"] == 0
        assert result["summary"]["averageTaskCompletion"] == 75
        assert result["summary"]["averageSubmissionRate"] == 17

    def test_trends_needs_positive_window(self):
        """weeks below 1 is a validation error."""
        with pytest.raises(ValidationError):
            hierarchy_service.get_task_completion_trends(self.admin, WEEK, weeks=0)

    def test_incomplete_reasons(self):
        """Reasons are counted with affected users and percentages."""
        result = hierarchy_service.get_incomplete_reasons_analysis(self.admin, WEEK)
        assert result["totalIncompleteTasks"] == 1
        top = result["reasonsAnalysis"][0]
        assert top["reason"] == "Thiếu vật tư"
        assert top["affectedUsers"] == 1
        assert top["percentage"] == 100
        assert top["sampleTasks"] == [
            {"taskName": "Task 2", "userName": self.bob.full_name, "department": "Phòng Kinh doanh"}
        ]
        assert result["summary"]["topReason"] == "Thiếu vật tư"
