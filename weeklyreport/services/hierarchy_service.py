"""
Hierarchy service — drill-down views from offices to individual users.

Every view answers for one work week and returns ``weekNumber``,
``year``, a ``summary`` block and a breakdown list whose entries carry
their own ``stats`` block from ``stats_engine``.  Visibility always
comes from ``access_service``; this module never inspects roles to
decide *which* users to include, only which view to dispatch to.

Ranking policies: office, department and user drill-downs use the
strict policy; the position partition views (management / staff /
mixed) rank with the loose policy.
"""

import logging

from weeklyreport import serializers
from weeklyreport.errors import ForbiddenError, NotFoundError, ValidationError
from weeklyreport.extensions import db
from weeklyreport.models.organization import Department, Office
from weeklyreport.models.report import Report
from weeklyreport.models.user import User, UserRole
from weeklyreport.services import access_service, organization_service, stats_engine
from weeklyreport.services import subordinate_service
from weeklyreport.services.ranking import LOOSE_RANKING, STRICT_RANKING
from weeklyreport.services.report_data import (
    load_user_reports,
    reportable_users_query,
    scoped_users,
)
from weeklyreport.utils.week import WorkWeek, recent_weeks

logger = logging.getLogger(__name__)

TOP_REASONS_LIMIT = 5
SAMPLE_TASKS_LIMIT = 10

VIEW_TYPES = ("management", "staff", "mixed")


def _all_tasks(records):
    return [task for record in records for report in record.reports for task in report.tasks]


def _user_entry(record, policy=STRICT_RANKING) -> dict:
    entry = serializers.user_brief(record.user)
    entry["stats"] = stats_engine.user_stats(record, policy)
    return entry


def _week_payload(week: WorkWeek, **body) -> dict:
    return {"weekNumber": week.week_number, "year": week.year, **body}


# =========================================================================
# Offices
# =========================================================================


def get_offices_overview(viewer: User, week: WorkWeek) -> dict:
    """
    All offices with their stats; ADMIN and SUPERADMIN only.

    Raises:
        ForbiddenError: For any other role.
    """
    if not viewer.is_admin:
        logger.warning("Offices overview denied for user %d", viewer.id)
        raise ForbiddenError("Access denied.")

    records = load_user_reports(reportable_users_query().all(), [week])
    by_office = {group.id: group for group in stats_engine.group_stats(records, stats_engine.by_office)}

    offices = []
    total_departments = 0
    for office in Office.query.order_by(Office.name).all():
        department_count = office.departments.count()
        total_departments += department_count
        group = by_office.get(office.id)
        group_records = group.records if group else []
        stats = group.stats if group else stats_engine.compute_stats([])
        offices.append(
            {
                **serializers.office_to_dict(office),
                "stats": {
                    **stats.to_dict(),
                    "totalDepartments": department_count,
                    "topIncompleteReasons": _reason_counts(group_records),
                },
            }
        )

    summary = stats_engine.compute_stats(records).to_dict()
    summary.update({"totalOffices": len(offices), "totalDepartments": total_departments})
    return _week_payload(week, summary=summary, offices=offices)


def _reason_counts(records) -> list[dict]:
    return [
        {"reason": entry["reason"], "count": entry["count"]}
        for entry in stats_engine.incomplete_reasons(
            _all_tasks(records), limit=TOP_REASONS_LIMIT
        )
    ]


def get_office_details(viewer: User, office_id: int, week: WorkWeek) -> dict:
    """Departments of one office with per-department stats."""
    office = organization_service.get_office(office_id)
    access_service.ensure_can_access_office(viewer, office)

    users = scoped_users(viewer, office_id=office.id)
    records = load_user_reports(users, [week])
    by_department = {
        group.id: group
        for group in stats_engine.group_stats(records, stats_engine.by_department)
    }

    departments = []
    for department in office.departments.order_by(Department.name):
        group = by_department.get(department.id)
        group_records = group.records if group else []
        stats = group.stats if group else stats_engine.compute_stats([])
        departments.append(
            {
                "id": department.id,
                "name": department.name,
                "description": department.description,
                "stats": {
                    **stats.to_dict(),
                    "totalJobPositions": department.job_positions.count(),
                    "topIncompleteReasons": _reason_counts(group_records),
                },
            }
        )

    summary = stats_engine.compute_stats(records).to_dict()
    summary["totalDepartments"] = len(departments)
    return _week_payload(
        week,
        office=serializers.office_to_dict(office),
        summary=summary,
        departments=departments,
    )


# =========================================================================
# Departments and users
# =========================================================================


def get_department_details(viewer: User, department_id: int, week: WorkWeek) -> dict:
    """Job-position breakdown and user list of one department."""
    department = organization_service.get_department(department_id)
    access_service.ensure_can_access_department(viewer, department)

    users = scoped_users(viewer, department_id=department.id)
    records = load_user_reports(users, [week])
    job_positions = [
        {
            **group.to_dict(),
            "positionName": group.records[0].user.position_name,
        }
        for group in stats_engine.group_stats(records, stats_engine.by_job_position)
    ]

    return _week_payload(
        week,
        department={
            "id": department.id,
            "name": department.name,
            "office": serializers.office_to_dict(department.office),
        },
        summary=stats_engine.compute_stats(records).to_dict(),
        jobPositions=job_positions,
        users=[_user_entry(record) for record in records],
    )


def _report_analysis(report: Report) -> dict:
    total = report.total_tasks
    completed = report.completed_tasks
    return {
        "id": report.id,
        "weekNumber": report.week_number,
        "year": report.year,
        "isCompleted": report.is_completed,
        "isLocked": report.is_locked,
        "stats": {
            "totalTasks": total,
            "completedTasks": completed,
            "incompleteTasks": total - completed,
            "taskCompletionRate": stats_engine.calculate_percentage(completed, total),
            "tasksByDay": stats_engine.tasks_by_day(report.tasks),
            "incompleteReasons": stats_engine.incomplete_reasons(report.tasks),
        },
        "tasks": [serializers.task_to_dict(task) for task in report.tasks],
    }


def get_user_details(
    viewer: User, user_id: int, week: WorkWeek | None = None, limit: int = 10
) -> dict:
    """
    One user's recent reports with per-report analysis.

    When ``week`` is given only that week's report is returned.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User ID {user_id} not found.")
    access_service.ensure_can_access_user(viewer, user)

    query = Report.query.filter_by(user_id=user.id)
    if week is not None:
        query = query.filter_by(week_number=week.week_number, year=week.year)
    reports = query.order_by(Report.year.desc(), Report.week_number.desc()).limit(limit).all()

    total_reports = len(reports)
    completed_reports = sum(1 for report in reports if report.is_completed)
    total_tasks = sum(report.total_tasks for report in reports)
    completed_tasks = sum(report.completed_tasks for report in reports)

    payload = {
        "user": serializers.user_to_dict(user),
        "overallStats": {
            "totalReports": total_reports,
            "completedReports": completed_reports,
            "reportCompletionRate": stats_engine.calculate_percentage(
                completed_reports, total_reports
            ),
            "totalTasks": total_tasks,
            "completedTasks": completed_tasks,
            "taskCompletionRate": stats_engine.calculate_percentage(
                completed_tasks, total_tasks
            ),
        },
        "reports": [_report_analysis(report) for report in reports],
    }
    if week is not None:
        payload.update(week.as_dict())
    return payload


# =========================================================================
# Manager views
# =========================================================================


def _subordinate_status(record) -> str:
    if not record.has_report:
        return "not_submitted"
    if record.has_completed_report:
        return "completed"
    return "incomplete"


def get_manager_reports(viewer: User, week: WorkWeek) -> dict:
    """
    Subordinates resolved by level band, with their report status.

    Raises:
        ForbiddenError: When the viewer's level grants no subordinates
                        (lowest tier, unknown level, or an assistant title).
    """
    if not viewer.is_admin and not subordinate_service.visible_levels(viewer):
        logger.warning("Manager reports denied for user %d", viewer.id)
        raise ForbiddenError("You do not have permission to view subordinate reports.")

    subordinates = subordinate_service.resolve_subordinates(viewer.id, "level_range")
    records = load_user_reports(subordinates, [week])
    stats = stats_engine.compute_stats(records)

    entries = []
    for record in records:
        entry = _user_entry(record)
        entry["status"] = _subordinate_status(record)
        entries.append(entry)

    summary = {
        "totalSubordinates": stats.total_users,
        "submittedReports": stats.users_with_reports,
        "completedReports": stats.users_with_completed_reports,
        "notSubmitted": stats.users_without_reports,
        "reportSubmissionRate": stats.submission_rate,
        "averageCompletionRate": stats.average_completion_rate,
        "stats": stats.to_dict(),
    }
    return _week_payload(
        week,
        manager=serializers.user_brief(viewer),
        summary=summary,
        departments=stats_engine.department_breakdown(records),
        subordinates=entries,
    )


def get_position_hierarchy(viewer: User, week: WorkWeek, view_type: str = "mixed") -> dict:
    """
    Position and job-position breakdowns split into management and staff.

    ``view_type`` selects ``management``, ``staff`` or ``mixed``.  The
    mixed summary averages the two partition summaries when both exist.
    """
    if view_type not in VIEW_TYPES:
        raise ValidationError(f"View type must be one of {', '.join(VIEW_TYPES)}.")

    records = load_user_reports(scoped_users(viewer), [week])
    management = [r for r in records if stats_engine.is_management_position(r.user.position)]
    staff = [r for r in records if stats_engine.is_staff_position(r.user.position)]

    partitions = {"management": management, "staff": staff}
    if view_type == "mixed":
        selected = {name: recs for name, recs in partitions.items() if recs}
    else:
        selected = {view_type: partitions[view_type]}

    positions, job_positions, summaries = [], [], {}
    for name, recs in selected.items():
        position_groups = stats_engine.group_stats(recs, stats_engine.by_position, LOOSE_RANKING)
        for group in position_groups:
            position = group.records[0].user.position
            positions.append(
                {
                    **group.to_dict(),
                    "level": position.level,
                    "isManagement": name == "management",
                    "users": [_user_entry(record, LOOSE_RANKING) for record in group.records],
                }
            )
        for group in stats_engine.group_stats(recs, stats_engine.by_job_position, LOOSE_RANKING):
            first = group.records[0].user
            job_positions.append(
                {
                    **group.to_dict(),
                    "positionName": first.position_name,
                    "departmentName": first.department.name if first.department else None,
                    "isManagement": name == "management",
                }
            )
        summaries[name] = stats_engine.view_summary(
            stats_engine.compute_stats(recs, LOOSE_RANKING), len(position_groups)
        )

    if len(summaries) == 2:
        summary = stats_engine.merge_view_summaries(summaries["management"], summaries["staff"])
    elif summaries:
        summary = next(iter(summaries.values()))
    else:
        summary = stats_engine.view_summary(stats_engine.compute_stats([], LOOSE_RANKING), 0)

    positions.sort(key=lambda entry: (entry["level"], entry["name"]))
    return _week_payload(
        week,
        viewType=view_type,
        summary=summary,
        groupSummaries=summaries,
        positions=positions,
        jobPositions=job_positions,
    )


def get_my_hierarchy_view(viewer: User, week: WorkWeek) -> dict:
    """
    Dispatch to the view that fits the viewer's role and position.

    Admins get the offices overview, office managers their office,
    office admins their department, managers their subordinates,
    hierarchy viewers their department, and everyone else themselves.
    """
    if viewer.is_admin:
        return get_offices_overview(viewer, week)
    if viewer.role == UserRole.OFFICE_MANAGER.value:
        return get_office_details(viewer, viewer.office_id, week)
    if viewer.role == UserRole.OFFICE_ADMIN.value or (
        viewer.can_view_hierarchy and not viewer.is_management
    ):
        if viewer.department_id is None:
            raise ForbiddenError("Department not found for this user.")
        return get_department_details(viewer, viewer.department_id, week)
    if viewer.is_management and subordinate_service.visible_levels(viewer):
        return get_manager_reports(viewer, week)
    return get_user_details(viewer, viewer.id, week)


# =========================================================================
# Trends and reasons
# =========================================================================


def get_task_completion_trends(
    viewer: User,
    end_week: WorkWeek,
    weeks: int = 4,
    office_id: int | None = None,
    department_id: int | None = None,
) -> dict:
    """Week-by-week stats for the viewer's scope, oldest week first."""
    if weeks < 1:
        raise ValidationError("weeks must be at least 1.")

    users = scoped_users(viewer, office_id=office_id, department_id=department_id)
    window = recent_weeks(weeks, end_week)
    trends = []
    for week in window:
        stats = stats_engine.compute_stats(load_user_reports(users, [week]))
        trends.append(
            {
                "weekNumber": week.week_number,
                "year": week.year,
                "totalUsers": stats.total_users,
                "totalReports": stats.users_with_reports,
                "completedReports": stats.users_with_completed_reports,
                "submissionRate": stats.submission_rate,
                "totalTasks": stats.total_tasks,
                "completedTasks": stats.completed_tasks,
                "taskCompletionRate": stats.average_completion_rate,
            }
        )

    window_stats = stats_engine.compute_stats(load_user_reports(users, window))
    return {
        "filters": {"weeks": weeks, "officeId": office_id, "departmentId": department_id},
        "trends": trends,
        "summary": {
            "averageTaskCompletion": window_stats.average_completion_rate,
            "averageSubmissionRate": stats_engine.calculate_percentage(
                sum(t["totalReports"] for t in trends),
                sum(t["totalUsers"] for t in trends),
            ),
        },
    }


def get_incomplete_reasons_analysis(
    viewer: User,
    week: WorkWeek,
    office_id: int | None = None,
    department_id: int | None = None,
) -> dict:
    """Group the scope's incomplete tasks by reason, most frequent first."""
    records = load_user_reports(
        scoped_users(viewer, office_id=office_id, department_id=department_id), [week]
    )
    entries = stats_engine.incomplete_reasons(
        _all_tasks(records),
        owner=lambda task: task.report.user,
        sample_limit=SAMPLE_TASKS_LIMIT,
    )
    total = sum(entry["count"] for entry in entries)

    analysis = [
        {
            "reason": entry["reason"],
            "count": entry["count"],
            "affectedUsers": entry["affectedUsers"],
            "percentage": stats_engine.calculate_percentage(entry["count"], total),
            "sampleTasks": entry["sampleTasks"],
        }
        for entry in entries
    ]
    return _week_payload(
        week,
        totalIncompleteTasks=total,
        totalReports=sum(len(record.reports) for record in records),
        reasonsAnalysis=analysis,
        summary={
            "topReason": analysis[0]["reason"] if analysis else None,
            "mostAffectedUsers": analysis[0]["affectedUsers"] if analysis else 0,
            "diversityIndex": len(analysis),
        },
    )
