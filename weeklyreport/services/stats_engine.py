"""
Stats engine — the single source of truth for report statistics.

Every submission rate, completion rate and ranking figure returned by
the hierarchy, ranking and statistics endpoints is folded here.  No
route or other service computes its own rates.

Aggregation rules:
  - **Input:** a list of ``UserReports`` whose ``reports`` were already
    filtered to the target week (or period) by the caller.
  - **Submission rate:** users with at least one report ÷ users.
  - **Completion rate:** completed tasks ÷ tasks across the whole group
    (task-weighted, never an average of per-user rates).
  - **Ranking distribution:** each user's own completion rate, with 0 %
    for users who did not report, classified by the chosen policy.
  - Empty inputs and zero denominators produce zeros, never errors.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Iterable

from flask import current_app, has_app_context

from weeklyreport.models.report import WEEKDAYS
from weeklyreport.services.ranking import (
    LOOSE_RANKING,
    STRICT_RANKING,
    Ranking,
    RankingPolicy,
)

logger = logging.getLogger(__name__)

DEFAULT_INCOMPLETE_REASON = "Không có lý do"

_DEFAULT_MANAGEMENT_KEYWORDS = (
    "giám đốc",
    "trưởng",
    "phó",
    "manager",
    "leader",
    "supervisor",
)
_DEFAULT_EXCLUDED_STAFF_TITLES = ("Tổng giám đốc", "Chủ tịch", "CEO")


def calculate_percentage(numerator: float, denominator: float) -> int:
    """
    Return ``numerator / denominator`` as a whole percentage.

    Rounds half up, returns 0 for a zero (or negative) denominator and
    never returns a negative value.
    """
    if not denominator or denominator <= 0:
        return 0
    value = math.floor(numerator / denominator * 100 + 0.5)
    return max(0, value)


# =========================================================================
# Input and result data classes
# =========================================================================


@dataclass
class UserReports:
    """A user together with the reports that fall inside the target window."""

    user: object
    reports: list = field(default_factory=list)

    @property
    def has_report(self) -> bool:
        return len(self.reports) > 0

    @property
    def has_completed_report(self) -> bool:
        return any(report.is_completed for report in self.reports)

    @property
    def total_tasks(self) -> int:
        return sum(len(report.tasks) for report in self.reports)

    @property
    def completed_tasks(self) -> int:
        return sum(
            1 for report in self.reports for task in report.tasks if task.is_completed
        )

    @property
    def completion_rate(self) -> float:
        """Unrounded task completion rate; 0 without tasks or reports."""
        if self.total_tasks == 0:
            return 0.0
        return self.completed_tasks / self.total_tasks * 100


@dataclass
class GroupStats:
    """Rollup block shared by every aggregation level."""

    total_users: int = 0
    users_with_reports: int = 0
    users_with_completed_reports: int = 0
    users_without_reports: int = 0
    submission_rate: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0
    average_completion_rate: int = 0
    ranking: Ranking = Ranking.FAIL
    ranking_distribution: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "totalUsers": self.total_users,
            "usersWithReports": self.users_with_reports,
            "usersWithCompletedReports": self.users_with_completed_reports,
            "usersWithoutReports": self.users_without_reports,
            "submissionRate": self.submission_rate,
            "totalTasks": self.total_tasks,
            "completedTasks": self.completed_tasks,
            "averageCompletionRate": self.average_completion_rate,
            "ranking": self.ranking.value,
            "rankingLabel": self.ranking.label,
            "rankingDistribution": {
                bucket.value.lower(): dict(entry)
                for bucket, entry in self.ranking_distribution.items()
            },
        }


@dataclass
class GroupBreakdown:
    """Stats for one group (department, office, job position or position)."""

    id: int
    name: str
    stats: GroupStats
    records: list = field(default_factory=list, repr=False)
    extra: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, **self.extra, "stats": self.stats.to_dict()}


# =========================================================================
# Core fold
# =========================================================================


def compute_stats(
    records: Iterable[UserReports], policy: RankingPolicy = STRICT_RANKING
) -> GroupStats:
    """
    Fold user/report records into a ``GroupStats`` block.

    Args:
        records: Users with their pre-filtered reports.
        policy:  Ranking thresholds for the group label and distribution.

    Returns:
        A fully populated ``GroupStats``; all zeros for an empty input.
    """
    records = list(records)
    stats = GroupStats(total_users=len(records))

    distribution = {bucket: 0 for bucket in policy.buckets}
    for record in records:
        if record.has_report:
            stats.users_with_reports += 1
        if record.has_completed_report:
            stats.users_with_completed_reports += 1
        stats.total_tasks += record.total_tasks
        stats.completed_tasks += record.completed_tasks
        distribution[policy.classify(record.completion_rate)] += 1

    stats.users_without_reports = stats.total_users - stats.users_with_reports
    stats.submission_rate = calculate_percentage(
        stats.users_with_reports, stats.total_users
    )
    stats.average_completion_rate = calculate_percentage(
        stats.completed_tasks, stats.total_tasks
    )
    stats.ranking = policy.classify(stats.average_completion_rate)
    stats.ranking_distribution = {
        bucket: {
            "count": count,
            "percentage": calculate_percentage(count, stats.total_users),
        }
        for bucket, count in distribution.items()
    }
    return stats


def user_stats(record: UserReports, policy: RankingPolicy = LOOSE_RANKING) -> dict:
    """Per-user figures used in user lists; rates are rounded for display."""
    rate = calculate_percentage(record.completed_tasks, record.total_tasks)
    ranking = policy.classify(record.completion_rate)
    return {
        "hasReport": record.has_report,
        "reportsSubmitted": len(record.reports),
        "isCompleted": record.has_completed_report,
        "totalTasks": record.total_tasks,
        "completedTasks": record.completed_tasks,
        "completionRate": rate,
        "ranking": ranking.value,
        "rankingLabel": ranking.label,
    }


# =========================================================================
# Breakdowns
# =========================================================================


def group_stats(
    records: Iterable[UserReports],
    key: Callable[[UserReports], object],
    policy: RankingPolicy = STRICT_RANKING,
) -> list[GroupBreakdown]:
    """
    Group records by ``key`` and compute stats per group.

    ``key`` returns the grouping ORM object (or None to skip the record).
    Groups keep the order in which their first member was encountered.
    """
    groups: dict[int, GroupBreakdown] = {}
    for record in records:
        owner = key(record)
        if owner is None:
            continue
        group = groups.get(owner.id)
        if group is None:
            group = GroupBreakdown(
                id=owner.id,
                name=getattr(owner, "name", None) or getattr(owner, "job_name", ""),
                stats=GroupStats(),
            )
            groups[owner.id] = group
        group.records.append(record)

    for group in groups.values():
        group.stats = compute_stats(group.records, policy)
    return list(groups.values())


def by_department(record: UserReports):
    return record.user.department


def by_office(record: UserReports):
    return record.user.office


def by_job_position(record: UserReports):
    return record.user.job_position


def by_position(record: UserReports):
    return record.user.position


def department_breakdown(records: Iterable[UserReports]) -> list[dict]:
    """
    Lightweight per-department counts in first-encounter order.

    Returns:
        ``[{"id", "name", "userCount", "usersWithReports"}, ...]``
    """
    departments: dict[int, dict] = {}
    for record in records:
        department = record.user.department
        if department is None:
            continue
        entry = departments.setdefault(
            department.id,
            {
                "id": department.id,
                "name": department.name,
                "userCount": 0,
                "usersWithReports": 0,
            },
        )
        entry["userCount"] += 1
        if record.has_report:
            entry["usersWithReports"] += 1
    return list(departments.values())


# =========================================================================
# Management / staff partition
# =========================================================================


def _config_list(key: str, default: tuple[str, ...]) -> list[str]:
    if has_app_context():
        return list(current_app.config.get(key, default))
    return list(default)


def _matches_keyword(name: str, keywords: Iterable[str]) -> bool:
    lowered = (name or "").lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def is_management_position(position, keywords: Iterable[str] | None = None) -> bool:
    """Flagged management, or a title containing a management keyword."""
    if position is None:
        return False
    if keywords is None:
        keywords = _config_list("MANAGEMENT_TITLE_KEYWORDS", _DEFAULT_MANAGEMENT_KEYWORDS)
    return bool(position.is_management) or _matches_keyword(position.name, keywords)


def is_staff_position(
    position,
    keywords: Iterable[str] | None = None,
    excluded_titles: Iterable[str] | None = None,
) -> bool:
    """Explicitly non-management, no management keyword, not an excluded top title."""
    if position is None:
        return False
    if keywords is None:
        keywords = _config_list("MANAGEMENT_TITLE_KEYWORDS", _DEFAULT_MANAGEMENT_KEYWORDS)
    if excluded_titles is None:
        excluded_titles = _config_list(
            "EXCLUDED_STAFF_TITLES", _DEFAULT_EXCLUDED_STAFF_TITLES
        )
    excluded = {title.strip().lower() for title in excluded_titles}
    return (
        not position.is_management
        and not _matches_keyword(position.name, keywords)
        and (position.name or "").strip().lower() not in excluded
    )


def view_summary(stats: GroupStats, group_count: int) -> dict:
    """Summary block of a position-partition view."""
    return {
        "totalGroups": group_count,
        "totalUsers": stats.total_users,
        "totalUsersWithReports": stats.users_with_reports,
        "averageSubmissionRate": stats.submission_rate,
        "averageCompletionRate": stats.average_completion_rate,
        "rankingDistribution": stats.to_dict()["rankingDistribution"],
    }


def merge_view_summaries(management: dict, staff: dict) -> dict:
    """
    Combine management and staff summaries for the mixed view.

    Counts are summed; the two rates are the plain arithmetic mean of
    the groups' rates, not a headcount-weighted mean.
    """
    return {
        "totalGroups": management["totalGroups"] + staff["totalGroups"],
        "totalUsers": management["totalUsers"] + staff["totalUsers"],
        "totalUsersWithReports": (
            management["totalUsersWithReports"] + staff["totalUsersWithReports"]
        ),
        "averageSubmissionRate": math.floor(
            (management["averageSubmissionRate"] + staff["averageSubmissionRate"]) / 2
            + 0.5
        ),
        "averageCompletionRate": math.floor(
            (management["averageCompletionRate"] + staff["averageCompletionRate"]) / 2
            + 0.5
        ),
    }


# =========================================================================
# Task-level helpers
# =========================================================================


def tasks_by_day(tasks: Iterable) -> dict[str, int]:
    """Count tasks flagged for each weekday."""
    tasks = list(tasks)
    return {day: sum(1 for task in tasks if getattr(task, day)) for day in WEEKDAYS}


def incomplete_reasons(
    tasks: Iterable,
    limit: int | None = None,
    owner: Callable | None = None,
    sample_limit: int | None = None,
) -> list[dict]:
    """
    Group incomplete tasks by their trimmed reason.

    Tasks without a reason are counted under ``DEFAULT_INCOMPLETE_REASON``.
    Ordered by count descending; ties keep first-seen order.

    When ``owner`` maps a task to its user, every entry also carries
    ``affectedUsers`` (distinct owners) and ``sampleTasks``, capped at
    ``sample_limit`` per reason.
    """
    reasons: dict[str, dict] = {}
    affected: dict[str, set] = {}
    for task in tasks:
        if task.is_completed:
            continue
        reason = (task.reason_not_done or "").strip() or DEFAULT_INCOMPLETE_REASON
        entry = reasons.setdefault(reason, {"reason": reason, "count": 0, "tasks": []})
        entry["count"] += 1
        entry["tasks"].append(task.task_name)
        if owner is None:
            continue

        user = owner(task)
        affected.setdefault(reason, set()).add(user.id)
        samples = entry.setdefault("sampleTasks", [])
        if sample_limit is None or len(samples) < sample_limit:
            samples.append(
                {
                    "taskName": task.task_name,
                    "userName": user.full_name,
                    "department": user.department.name if user.department else None,
                }
            )

    for reason, users in affected.items():
        reasons[reason]["affectedUsers"] = len(users)

    ordered = sorted(reasons.values(), key=lambda entry: entry["count"], reverse=True)
    return ordered[:limit] if limit is not None else ordered
