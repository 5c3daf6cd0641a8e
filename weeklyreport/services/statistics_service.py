"""
Statistics service — organisation-wide submission figures for admins.

Only users whose position is reportable count toward obligations; the
rates come from ``stats_engine`` like every other view.
"""

import logging

from weeklyreport import serializers
from weeklyreport.models.organization import Department, Office
from weeklyreport.models.report import Report
from weeklyreport.services import organization_service, stats_engine
from weeklyreport.services.report_data import load_user_reports, reportable_users_query
from weeklyreport.utils.week import WorkWeek

logger = logging.getLogger(__name__)


def get_overview(week: WorkWeek) -> dict:
    users = reportable_users_query().all()
    stats = stats_engine.compute_stats(load_user_reports(users, [week]))
    return {
        "totalUsers": stats.total_users,
        "totalDepartments": Department.query.count(),
        "totalOffices": Office.query.count(),
        "currentWeek": {
            "weekNumber": week.week_number,
            "year": week.year,
            "submittedReports": stats.users_with_reports,
            "pendingReports": stats.users_without_reports,
            "submissionRate": stats.submission_rate,
        },
    }


def get_completion_rates(week: WorkWeek, department_id: int | None = None) -> list[dict]:
    """
    Per-department submission and completion figures for one week.

    Departments without reportable users are listed with zeros.
    """
    if department_id is not None:
        departments = [organization_service.get_department(department_id)]
    else:
        departments = Department.query.order_by(Department.name).all()

    query = reportable_users_query()
    if department_id is not None:
        query = query.filter(Department.id == department_id)
    records = load_user_reports(query.all(), [week])
    groups = {
        group.id: group
        for group in stats_engine.group_stats(records, stats_engine.by_department)
    }

    rates = []
    for department in departments:
        group = groups.get(department.id)
        stats = group.stats if group else stats_engine.compute_stats([])
        rates.append(
            {
                "department": {
                    "id": department.id,
                    "name": department.name,
                    "office": serializers.office_to_dict(department.office),
                },
                "weekNumber": week.week_number,
                "year": week.year,
                "totalUsers": stats.total_users,
                "submittedReports": stats.users_with_reports,
                "completedReports": stats.users_with_completed_reports,
                "submissionRate": stats.submission_rate,
                "completionRate": stats.average_completion_rate,
            }
        )
    return rates


def get_missing_reports(week: WorkWeek) -> dict:
    """Reportable users with no report for ``week``."""
    records = load_user_reports(reportable_users_query().all(), [week])
    missing = [record.user for record in records if not record.has_report]
    return {
        "weekNumber": week.week_number,
        "year": week.year,
        "totalMissing": len(missing),
        "users": [serializers.user_brief(user) for user in missing],
    }


def get_task_statistics(week: WorkWeek) -> list[dict]:
    """Completion per task name across all reports of the week."""
    reports = Report.query.filter_by(week_number=week.week_number, year=week.year).all()
    totals: dict[str, list[int]] = {}
    for report in reports:
        for task in report.tasks:
            counts = totals.setdefault(task.task_name, [0, 0])
            counts[0] += 1
            if task.is_completed:
                counts[1] += 1

    return [
        {
            "taskName": name,
            "totalAssigned": total,
            "completed": completed,
            "completionRate": stats_engine.calculate_percentage(completed, total),
        }
        for name, (total, completed) in totals.items()
    ]


def get_summary_report(week: WorkWeek) -> dict:
    records = load_user_reports(reportable_users_query().all(), [week])
    stats = stats_engine.compute_stats(records)
    missing = get_missing_reports(week)
    logger.debug(
        "Summary for week %d/%d: %d users, %d missing",
        week.week_number,
        week.year,
        stats.total_users,
        missing["totalMissing"],
    )
    return {
        "weekNumber": week.week_number,
        "year": week.year,
        "summary": {
            "totalDepartments": Department.query.count(),
            "totalUsers": stats.total_users,
            "totalSubmitted": stats.users_with_reports,
            "totalCompleted": stats.users_with_completed_reports,
            "totalMissing": missing["totalMissing"],
            "overallSubmissionRate": stats.submission_rate,
            "overallCompletionRate": stats.average_completion_rate,
        },
        "departmentBreakdown": get_completion_rates(week),
        "missingReports": missing["users"],
        "taskStatistics": get_task_statistics(week),
    }
