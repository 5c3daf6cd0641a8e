"""
Ranking service — completion rankings over a period of work weeks.

All rankings use the strict policy.  A period is the ``period_weeks``
work weeks ending at the target week (inclusive); each user's rate is
completed ÷ total tasks across every report in the period.
"""

import logging

from flask import current_app

from weeklyreport import serializers
from weeklyreport.errors import ForbiddenError, ValidationError
from weeklyreport.models.user import User
from weeklyreport.services import access_service, organization_service, stats_engine
from weeklyreport.services.ranking import STRICT_RANKING, Ranking
from weeklyreport.services.report_data import load_user_reports, scoped_users
from weeklyreport.utils.week import WorkWeek, recent_weeks

logger = logging.getLogger(__name__)

TOP_LIST_LIMIT = 10
NEEDS_IMPROVEMENT_RATE = 70
NEEDS_IMPROVEMENT_BUCKETS = (Ranking.POOR, Ranking.FAIL)


def _period(end_week: WorkWeek, period_weeks: int | None) -> list[WorkWeek]:
    if period_weeks is None:
        period_weeks = current_app.config["DEFAULT_RANKING_PERIOD_WEEKS"]
    if period_weeks < 1:
        raise ValidationError("periodWeeks must be at least 1.")
    return recent_weeks(period_weeks, end_week)


def _filters(end_week: WorkWeek, weeks: list[WorkWeek], **extra) -> dict:
    return {
        "weekNumber": end_week.week_number,
        "year": end_week.year,
        "periodWeeks": len(weeks),
        "from": weeks[0].as_dict(),
        "to": weeks[-1].as_dict(),
        **extra,
    }


def _employee_entry(record) -> dict:
    rate = stats_engine.calculate_percentage(record.completed_tasks, record.total_tasks)
    ranking = STRICT_RANKING.classify(record.completion_rate)
    return {
        "employee": serializers.user_brief(record.user),
        "performance": {
            "totalReports": len(record.reports),
            "totalTasks": record.total_tasks,
            "completedTasks": record.completed_tasks,
            "completionRate": rate,
            "ranking": ranking.value,
            "rankingLabel": ranking.label,
        },
    }


def _top_performers(entries: list[dict]) -> list[dict]:
    excellent = [
        e for e in entries if e["performance"]["ranking"] == Ranking.EXCELLENT.value
    ]
    excellent.sort(key=lambda e: e["performance"]["completionRate"], reverse=True)
    return excellent[:TOP_LIST_LIMIT]


def _needs_improvement(entries: list[dict]) -> list[dict]:
    buckets = {bucket.value for bucket in NEEDS_IMPROVEMENT_BUCKETS}
    weak = [e for e in entries if e["performance"]["ranking"] in buckets]
    weak.sort(key=lambda e: e["performance"]["completionRate"])
    return weak[:TOP_LIST_LIMIT]


def _employee_summary(records, entries: list[dict]) -> dict:
    stats = stats_engine.compute_stats(records, STRICT_RANKING)
    return {
        "totalEmployees": stats.total_users,
        "averageCompletionRate": stats.average_completion_rate,
        "rankingDistribution": stats.to_dict()["rankingDistribution"],
        "topPerformers": len(_top_performers(entries)),
        "needsImprovement": sum(
            1
            for e in entries
            if e["performance"]["ranking"]
            in {bucket.value for bucket in NEEDS_IMPROVEMENT_BUCKETS}
        ),
    }


def get_employee_ranking(
    viewer: User,
    end_week: WorkWeek,
    period_weeks: int | None = None,
    employee_id: int | None = None,
) -> dict:
    """
    Rank each visible employee by task completion over the period.

    Args:
        viewer:       Requesting user; the access scope limits the list.
        end_week:     Last week of the period.
        period_weeks: Period length; defaults to ``DEFAULT_RANKING_PERIOD_WEEKS``.
        employee_id:  Restrict to one employee (must be visible).
    """
    weeks = _period(end_week, period_weeks)
    users = scoped_users(viewer)
    if employee_id is not None:
        users = [user for user in users if user.id == employee_id]
        if not users:
            logger.warning(
                "Employee ranking denied: user %d cannot see user %d",
                viewer.id,
                employee_id,
            )
            raise ForbiddenError("Access denied to this employee.")

    records = load_user_reports(users, weeks)
    entries = [_employee_entry(record) for record in records]
    return {
        "filters": _filters(end_week, weeks, employeeId=employee_id),
        "employees": entries,
        "summary": _employee_summary(records, entries),
    }


def _group_ranking(groups, org_serializer) -> list[dict]:
    ranked = []
    for group in groups:
        entries = [_employee_entry(record) for record in group.records]
        ranked.append(
            {
                **org_serializer(group),
                "stats": group.stats.to_dict(),
                "topPerformers": _top_performers(entries),
                "needsImprovement": _needs_improvement(entries),
            }
        )
    ranked.sort(key=lambda entry: entry["stats"]["averageCompletionRate"], reverse=True)
    for position, entry in enumerate(ranked, start=1):
        entry["rank"] = position
    return ranked


def _group_summary(groups, ranked: list[dict], count_key: str) -> dict:
    """Summary over the union of the groups' records, task-weighted."""
    stats = stats_engine.compute_stats(
        [record for group in groups for record in group.records], STRICT_RANKING
    )
    rates = [entry["stats"]["averageCompletionRate"] for entry in ranked]
    return {
        count_key: len(ranked),
        "totalEmployees": stats.total_users,
        "averageCompletionRate": stats.average_completion_rate,
        "bestPerforming": (
            {"id": ranked[0]["id"], "name": ranked[0]["name"]} if ranked else None
        ),
        "needsImprovementCount": sum(1 for rate in rates if rate < NEEDS_IMPROVEMENT_RATE),
    }


def get_department_ranking(
    viewer: User,
    end_week: WorkWeek,
    period_weeks: int | None = None,
    department_id: int | None = None,
) -> dict:
    """Departments ranked by task-weighted completion over the period."""
    weeks = _period(end_week, period_weeks)
    if department_id is not None:
        department = organization_service.get_department(department_id)
        access_service.ensure_can_access_department(viewer, department)

    records = load_user_reports(scoped_users(viewer, department_id=department_id), weeks)
    groups = stats_engine.group_stats(records, stats_engine.by_department, STRICT_RANKING)
    ranked = _group_ranking(
        groups,
        lambda group: {
            "id": group.id,
            "name": group.name,
            "office": serializers.office_to_dict(group.records[0].user.department.office),
        },
    )
    return {
        "filters": _filters(end_week, weeks, departmentId=department_id),
        "departments": ranked,
        "summary": _group_summary(groups, ranked, "totalDepartments"),
    }


def _department_breakdown(group) -> list[dict]:
    return [
        {"id": sub.id, "name": sub.name, "stats": sub.stats.to_dict()}
        for sub in stats_engine.group_stats(
            group.records, stats_engine.by_department, STRICT_RANKING
        )
    ]


def get_office_ranking(
    viewer: User,
    end_week: WorkWeek,
    period_weeks: int | None = None,
    office_id: int | None = None,
) -> dict:
    """Offices ranked by task-weighted completion over the period."""
    weeks = _period(end_week, period_weeks)
    if office_id is not None:
        office = organization_service.get_office(office_id)
        access_service.ensure_can_access_office(viewer, office)

    records = load_user_reports(scoped_users(viewer, office_id=office_id), weeks)
    groups = stats_engine.group_stats(records, stats_engine.by_office, STRICT_RANKING)
    ranked = _group_ranking(
        groups,
        lambda group: {
            "id": group.id,
            "name": group.name,
            "type": group.records[0].user.office.type,
            "departments": _department_breakdown(group),
        },
    )
    return {
        "filters": _filters(end_week, weeks, officeId=office_id),
        "offices": ranked,
        "summary": _group_summary(groups, ranked, "totalOffices"),
    }


def get_overall_ranking(
    viewer: User, end_week: WorkWeek, period_weeks: int | None = None
) -> dict:
    """
    Company-wide ranking for administrators.

    Raises:
        ForbiddenError: The viewer is not ADMIN or SUPERADMIN.
    """
    if not viewer.is_admin:
        logger.warning("Overall ranking denied for user %d", viewer.id)
        raise ForbiddenError("Access denied.")

    weeks = _period(end_week, period_weeks)
    records = load_user_reports(scoped_users(viewer), weeks)
    entries = [_employee_entry(record) for record in records]
    overall = stats_engine.compute_stats(records, STRICT_RANKING)

    offices = [
        group.to_dict()
        for group in stats_engine.group_stats(records, stats_engine.by_office, STRICT_RANKING)
    ]
    offices.sort(key=lambda entry: entry["stats"]["averageCompletionRate"], reverse=True)

    return {
        "filters": _filters(end_week, weeks),
        "overall": overall.to_dict(),
        "officeRankings": offices,
        "topPerformers": _top_performers(entries),
        "needsImprovement": _needs_improvement(entries),
    }
