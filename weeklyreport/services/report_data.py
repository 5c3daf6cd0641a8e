"""
Report data loading for the aggregation services.

Fetches the users an aggregation covers and attaches their reports for
the requested weeks, producing the ``UserReports`` records that
``stats_engine`` folds.  Reports and tasks are loaded in one batched
query per call rather than per user.
"""

import logging

from sqlalchemy import and_, or_
from sqlalchemy.orm import selectinload

from weeklyreport.models.organization import Department, JobPosition, Position
from weeklyreport.models.report import Report
from weeklyreport.models.user import User
from weeklyreport.services import access_service
from weeklyreport.services.stats_engine import UserReports
from weeklyreport.utils.week import WorkWeek

logger = logging.getLogger(__name__)


def reportable_users_query():
    """Active users whose position is reportable, ordered like subordinate lists."""
    return (
        User.query.join(JobPosition, User.job_position_id == JobPosition.id)
        .join(Position, JobPosition.position_id == Position.id)
        .join(Department, JobPosition.department_id == Department.id)
        .filter(User.is_active == True)  # noqa: E712
        .filter(Position.is_reportable == True)  # noqa: E712
        .order_by(Position.level, Department.name, User.last_name, User.first_name)
    )


def scoped_users(
    viewer: User,
    office_id: int | None = None,
    department_id: int | None = None,
) -> list[User]:
    """Reportable users visible to ``viewer``, optionally narrowed further."""
    query = access_service.visible_users_query(viewer, query=reportable_users_query())
    if office_id is not None:
        query = query.filter(User.office_id == office_id)
    if department_id is not None:
        query = query.filter(JobPosition.department_id == department_id)
    return query.all()


def load_user_reports(users: list[User], weeks: list[WorkWeek]) -> list[UserReports]:
    """
    Attach each user's reports for ``weeks`` (in input order).

    Users without a report in the window get an empty list.
    """
    by_user: dict[int, list[Report]] = {user.id: [] for user in users}
    if users and weeks:
        week_clauses = [
            and_(Report.week_number == week.week_number, Report.year == week.year)
            for week in weeks
        ]
        reports = (
            Report.query.options(selectinload(Report.tasks))
            .filter(Report.user_id.in_(list(by_user)))
            .filter(or_(*week_clauses))
            .order_by(Report.year, Report.week_number)
            .all()
        )
        for report in reports:
            by_user[report.user_id].append(report)
    return [UserReports(user=user, reports=by_user[user.id]) for user in users]
