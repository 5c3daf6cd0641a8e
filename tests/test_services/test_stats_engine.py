"""
Tests for the stats engine: percentage rounding, the group fold, and
the management/staff partition helpers.
"""

from types import SimpleNamespace

import pytest

from weeklyreport.services import stats_engine
from weeklyreport.services.ranking import LOOSE_RANKING, Ranking
from weeklyreport.services.report_data import load_user_reports
from weeklyreport.utils.week import WorkWeek

WEEK = WorkWeek(2024, 10)


class TestCalculatePercentage:
    """Whole-number percentages, rounded half up."""

    @pytest.mark.parametrize(
        "numerator, denominator, expected",
        [(2, 3, 67), (1, 3, 33), (1, 8, 13), (7, 10, 70), (0, 5, 0), (5, 0, 0), (3, -1, 0)],
    )
    def test_values(self, numerator, denominator, expected):
        """Zero or negative denominators yield 0."""
        assert stats_engine.calculate_percentage(numerator, denominator) == expected


class TestComputeStats:
    """Department scenario: 3 users, 2 reports (5/5 and 2/5), 1 missing."""

    @pytest.fixture(autouse=True)
    def _setup(self, org):
        office = org.office(name="HQ")
        self.department = org.department(office, name="Phòng Kinh doanh")
        self.full = org.staff(self.department)
        self.partial = org.staff(self.department)
        self.missing = org.staff(self.department)
        org.report(self.full, WEEK, completed=5, total=5)
        org.report(self.partial, WEEK, completed=2, total=5)
        self.records = load_user_reports([self.full, self.partial, self.missing], [WEEK])

    def test_counts_and_rates(self):
        """Submission and task-weighted completion rates."""
        stats = stats_engine.compute_stats(self.records)
        assert stats.total_users == 3
        assert stats.users_with_reports == 2
        assert stats.users_without_reports == 1
        assert stats.users_with_completed_reports == 1
        assert stats.submission_rate == 67
        assert stats.total_tasks == 10
        assert stats.completed_tasks == 7
        assert stats.average_completion_rate == 70
        assert stats.ranking is Ranking.FAIL

    def test_ranking_distribution(self):
        """Users without a report count as 0 % in the distribution."""
        distribution = stats_engine.compute_stats(self.records).to_dict()[
            "rankingDistribution"
        ]
        assert distribution["excellent"] == {"count": 1, "percentage": 33}
        assert distribution["fail"] == {"count": 2, "percentage": 67}
        assert distribution["good"]["count"] == 0

    def test_other_weeks_ignored(self, org):
        """Reports outside the requested weeks are not loaded."""
        org.report(self.missing, WEEK.next(), completed=1, total=1)
        records = load_user_reports([self.missing], [WEEK])
        assert records[0].has_report is False

    def test_group_by_department(self):
        """Grouping keeps first-encounter order and per-group stats."""
        groups = stats_engine.group_stats(self.records, stats_engine.by_department)
        assert len(groups) == 1
        assert groups[0].id == self.department.id
        assert groups[0].stats.total_users == 3


class TestEmptyInput:
    """Empty groups produce zeros, never errors."""

    def test_empty(self):
        """All counters zero and ranking FAIL."""
        stats = stats_engine.compute_stats([])
        assert stats.total_users == 0
        assert stats.submission_rate == 0
        assert stats.average_completion_rate == 0
        assert stats.ranking is Ranking.FAIL

    def test_loose_policy_buckets(self):
        """A loose fold has no fail bucket in its distribution."""
        data = stats_engine.compute_stats([], LOOSE_RANKING).to_dict()
        assert "fail" not in data["rankingDistribution"]
        assert data["ranking"] == "POOR"


def _position(name, is_management=False):
    return SimpleNamespace(name=name, is_management=is_management)


class TestPositionPartition:
    """Management and staff classification by flag and title keyword."""

    def test_flagged_management(self):
        """The is_management flag wins regardless of title."""
        assert stats_engine.is_management_position(_position("Kỹ sư", True), keywords=[])

    def test_keyword_management(self):
        """A management keyword in the title counts as management."""
        position = _position("Trưởng phòng")
        assert stats_engine.is_management_position(position, keywords=["trưởng"])
        assert not stats_engine.is_staff_position(
            position, keywords=["trưởng"], excluded_titles=[]
        )

    def test_staff_excludes_top_titles(self):
        """Excluded executive titles are never staff."""
        assert not stats_engine.is_staff_position(
            _position("CEO"), keywords=["trưởng"], excluded_titles=["CEO"]
        )
        assert stats_engine.is_staff_position(
            _position("Nhân viên"), keywords=["trưởng"], excluded_titles=["CEO"]
        )

    def test_merge_view_summaries_uses_plain_mean(self):
        """Mixed-view rates are the mean of the two partition rates."""
        management = {
            "totalGroups": 1,
            "totalUsers": 1,
            "totalUsersWithReports": 1,
            "averageSubmissionRate": 100,
            "averageCompletionRate": 90,
        }
        staff = {
            "totalGroups": 2,
            "totalUsers": 9,
            "totalUsersWithReports": 3,
            "averageSubmissionRate": 33,
            "averageCompletionRate": 50,
        }
        merged = stats_engine.merge_view_summaries(management, staff)
        assert merged["totalUsers"] == 10
        assert merged["averageSubmissionRate"] == 67
        assert merged["averageCompletionRate"] == 70


class TestTaskHelpers:
    """Per-day counts and incomplete-reason grouping."""

    def test_incomplete_reasons(self):
        """Blank reasons fall back to the default label; most frequent first."""
        tasks = [
            SimpleNamespace(task_name="a", is_completed=False, reason_not_done="Thiếu vật tư"),
            SimpleNamespace(task_name="b", is_completed=False, reason_not_done="  "),
            SimpleNamespace(task_name="c", is_completed=False, reason_not_done=None),
            SimpleNamespace(task_name="d", is_completed=True, reason_not_done=None),
        ]
        reasons = stats_engine.incomplete_reasons(tasks)
        assert reasons[0]["reason"] == stats_engine.DEFAULT_INCOMPLETE_REASON
        assert reasons[0]["count"] == 2
        assert reasons[1] == {"reason": "Thiếu vật tư", "count": 1, "tasks": ["a"]}

    def test_incomplete_reasons_with_owner(self):
        """An owner mapping adds distinct affected users and capped samples."""
        sales = SimpleNamespace(name="Phòng Kinh doanh")
        an = SimpleNamespace(id=1, full_name="An Nguyễn", department=sales)
        binh = SimpleNamespace(id=2, full_name="Bình Trần", department=None)
        tasks = [
            SimpleNamespace(task_name="a", is_completed=False, reason_not_done="Thiếu vật tư", user=an),
            SimpleNamespace(task_name="b", is_completed=False, reason_not_done="Thiếu vật tư", user=an),
            SimpleNamespace(task_name="c", is_completed=False, reason_not_done="Thiếu vật tư", user=binh),
        ]
        reasons = stats_engine.incomplete_reasons(
            tasks, owner=lambda task: task.user, sample_limit=2
        )
        assert len(reasons) == 1
        assert reasons[0]["count"] == 3
        assert reasons[0]["affectedUsers"] == 2
        assert reasons[0]["sampleTasks"] == [
            {"taskName": "a", "userName": "An Nguyễn", "department": "Phòng Kinh doanh"},
            {"taskName": "b", "userName": "An Nguyễn", "department": "Phòng Kinh doanh"},
        ]
