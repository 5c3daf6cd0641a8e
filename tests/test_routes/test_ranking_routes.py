"""
Tests for the ranking blueprint.
"""

import pytest

from weeklyreport.models.user import UserRole
from weeklyreport.utils.week import WorkWeek

WEEK = WorkWeek(2024, 10)
WEEK_ARGS = {"weekNumber": 10, "year": 2024, "periodWeeks": 1}


class TestRankingRoutes:
    """Department, office and overall rankings are for administrators."""

    @pytest.fixture(autouse=True)
    def _setup(self, org):
        office = org.office(name="HQ")
        self.sales = org.department(office, name="Phòng Kinh doanh")
        self.admin = org.staff(
            self.sales, level=1, role=UserRole.ADMIN.value, is_reportable=False
        )
        self.alice = org.staff(self.sales)
        org.report(self.alice, WEEK, completed=3, total=4)

    def test_admin_department_ranking(self, client, auth_headers):
        """Administrators get the ranked departments."""
        response = client.get(
            "/ranking/departments", query_string=WEEK_ARGS, headers=auth_headers(self.admin)
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["departments"][0]["id"] == self.sales.id
        assert body["departments"][0]["rank"] == 1
        assert body["summary"]["averageCompletionRate"] == 75

    def test_user_cannot_rank_departments(self, client, auth_headers):
        """The admin_required gate answers 403 for plain users."""
        response = client.get(
            "/ranking/departments", query_string=WEEK_ARGS, headers=auth_headers(self.alice)
        )
        assert response.status_code == 403
        assert response.get_json()["error"] == "FORBIDDEN"

    def test_user_sees_own_employee_ranking(self, client, auth_headers):
        """The employee ranking is limited to the caller's scope."""
        response = client.get(
            "/ranking/employees", query_string=WEEK_ARGS, headers=auth_headers(self.alice)
        )
        assert response.status_code == 200
        employees = response.get_json()["employees"]
        assert [e["employee"]["id"] for e in employees] == [self.alice.id]
