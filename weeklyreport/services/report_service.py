"""
Report service — weekly report lifecycle and the report lock job.

Lock enforcement: every mutation first issues

    UPDATE report SET updated_at = now()
     WHERE id = :id AND is_locked = false

inside the same transaction as the change.  If no row matches, the
report is locked and ``InvalidStateError`` is raised.  The write takes
the row lock, so a concurrent ``lock_reports_by_week`` either runs
before (and the edit is rejected) or waits until the edit commits.

Check order for every mutation: NotFound, then Forbidden (owner or
admin), then InvalidState, then the editable-week window.
"""

import logging
from datetime import date

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError

from weeklyreport.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from weeklyreport.extensions import db
from weeklyreport.models.organization import JobPosition
from weeklyreport.models.report import WEEKDAYS, Report, ReportTask
from weeklyreport.models.user import User
from weeklyreport.services import access_service, evaluation_service
from weeklyreport.utils import week as week_utils

logger = logging.getLogger(__name__)


# -- Lookup ----------------------------------------------------------------


def get_report(report_id: int) -> Report:
    report = db.session.get(Report, report_id)
    if report is None:
        raise NotFoundError(f"Report ID {report_id} not found.")
    return report


def get_task(task_id: int) -> ReportTask:
    task = db.session.get(ReportTask, task_id)
    if task is None:
        raise NotFoundError(f"Task ID {task_id} not found.")
    return task


def get_report_for_viewer(viewer: User, report_id: int) -> Report:
    """Return a report the viewer owns or may see through their access scope."""
    report = get_report(report_id)
    access_service.ensure_can_access_user(viewer, report.user)
    return report


def get_report_by_week(user_id: int, week_number: int, year: int) -> Report | None:
    return Report.query.filter_by(
        user_id=user_id, week_number=week_number, year=year
    ).first()


def get_current_week_report(user: User, today: date | None = None) -> Report | None:
    current = week_utils.current_work_week(today)
    return get_report_by_week(user.id, current.week_number, current.year)


def get_my_reports(user: User, page: int = 1, per_page: int = 10, year: int | None = None):
    """Return the user's reports, newest week first, paginated."""
    query = Report.query.filter_by(user_id=user.id).order_by(
        Report.year.desc(), Report.week_number.desc()
    )
    if year is not None:
        query = query.filter(Report.year == year)
    return query.paginate(page=page, per_page=per_page, error_out=False)


def list_reports(
    viewer: User,
    week_number: int | None = None,
    year: int | None = None,
    office_id: int | None = None,
    department_id: int | None = None,
    user_id: int | None = None,
    is_completed: bool | None = None,
    is_locked: bool | None = None,
    page: int = 1,
    per_page: int = 20,
):
    """
    Paginated report listing narrowed to the viewer's access scope.

    Returns:
        A Flask-SQLAlchemy pagination object of ``Report`` rows.
    """
    query = access_service.visible_users_query(
        viewer,
        include_inactive=True,
        query=Report.query.join(User, Report.user_id == User.id),
    ).order_by(Report.year.desc(), Report.week_number.desc(), User.last_name)
    if week_number is not None:
        query = query.filter(Report.week_number == week_number)
    if year is not None:
        query = query.filter(Report.year == year)
    if office_id is not None:
        query = query.filter(User.office_id == office_id)
    if department_id is not None:
        query = query.join(JobPosition, User.job_position_id == JobPosition.id).filter(
            JobPosition.department_id == department_id
        )
    if user_id is not None:
        query = query.filter(Report.user_id == user_id)
    if is_completed is not None:
        query = query.filter(Report.is_completed == is_completed)
    if is_locked is not None:
        query = query.filter(Report.is_locked == is_locked)
    return query.paginate(page=page, per_page=per_page, error_out=False)


def get_report_stats(week_number: int | None = None, year: int | None = None) -> dict:
    """Count reports (optionally for one week) by completion state."""
    query = db.session.query(Report)
    if week_number and year:
        query = query.filter(Report.week_number == week_number, Report.year == year)
    total = query.count()
    completed = query.filter(Report.is_completed == True).count()  # noqa: E712
    return {
        "totalReports": total,
        "completedReports": completed,
        "pendingReports": total - completed,
        "completionRate": round(completed / total * 100, 2) if total else 0,
    }


# -- Validation helpers ----------------------------------------------------


def _validate_tasks(tasks: list[dict]) -> None:
    if not tasks:
        raise ValidationError("A report must contain at least one task.")
    for task in tasks:
        if not (task.get("task_name") or "").strip():
            raise ValidationError("Every task needs a name.")
        if not task.get("is_completed") and not (task.get("reason_not_done") or "").strip():
            raise ValidationError(
                "Lý do chưa hoàn thành là bắt buộc cho các công việc chưa hoàn thành"
            )


def _apply_task_fields(task: ReportTask, data: dict) -> None:
    task.task_name = data["task_name"].strip()
    for day in WEEKDAYS:
        setattr(task, day, bool(data.get(day, False)))
    task.is_completed = bool(data.get("is_completed", False))
    reason = (data.get("reason_not_done") or "").strip()
    task.reason_not_done = None if task.is_completed or not reason else reason


def _refresh_completion(report: Report) -> None:
    report.is_completed = bool(report.tasks) and all(
        task.is_completed for task in report.tasks
    )


def _ensure_owner_or_admin(report: Report, actor: User) -> None:
    if report.user_id != actor.id and not actor.is_admin:
        logger.warning(
            "Report mutation denied: user %d on report %d", actor.id, report.id
        )
        raise ForbiddenError("You can only modify your own reports.")


def _guard_unlocked(report_id: int) -> None:
    """Touch the report only if it is unlocked; raise otherwise."""
    result = db.session.execute(
        update(Report)
        .where(Report.id == report_id, Report.is_locked == False)  # noqa: E712
        .values(updated_at=func.current_timestamp())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.session.rollback()
        raise InvalidStateError("Cannot modify a locked report.")


def _ensure_week_in(report: Report, actor: User, weeks, message: str) -> None:
    if actor.is_admin:
        return
    allowed = {(w.week_number, w.year) for w in weeks}
    if (report.week_number, report.year) not in allowed:
        raise ForbiddenError(message)


_EDIT_WINDOW_MESSAGE = (
    "Chỉ có thể chỉnh sửa báo cáo cho tuần hiện tại, tuần trước và tuần sau"
)


# -- Mutations -------------------------------------------------------------


def create_report(
    user: User,
    week_number: int,
    year: int,
    tasks: list[dict],
    today: date | None = None,
) -> Report:
    """
    Create a weekly report for the previous, current or next work week.

    Args:
        user:  The report owner.
        tasks: Dicts with ``task_name``, day flags, ``is_completed`` and
               ``reason_not_done`` (required when not completed).

    Raises:
        ValidationError: Week outside the window or invalid tasks.
        ConflictError:   A report for this week already exists.
    """
    try:
        target = week_utils.WorkWeek.of(week_number, year)
    except ValueError as exc:
        raise ValidationError(f"Week {week_number}/{year} does not exist.") from exc
    if target not in week_utils.editable_weeks(today):
        raise ValidationError(
            "Chỉ có thể tạo báo cáo cho tuần hiện tại, tuần trước và tuần sau"
        )
    if get_report_by_week(user.id, week_number, year) is not None:
        raise ConflictError("Báo cáo cho tuần này đã tồn tại")
    _validate_tasks(tasks)

    report = Report(user_id=user.id, week_number=week_number, year=year)
    for data in tasks:
        task = ReportTask()
        _apply_task_fields(task, data)
        report.tasks.append(task)
    _refresh_completion(report)

    db.session.add(report)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("Báo cáo cho tuần này đã tồn tại") from exc

    logger.info(
        "User %d created report %d for W%d/%d (%d tasks)",
        user.id,
        report.id,
        week_number,
        year,
        len(report.tasks),
    )
    return report


def update_report(
    actor: User, report_id: int, tasks: list[dict], today: date | None = None
) -> Report:
    """
    Replace a report's task list.

    Tasks are matched to existing rows by name so their evaluations
    survive; unmatched old tasks are deleted with their evaluations.
    """
    report = get_report(report_id)
    _ensure_owner_or_admin(report, actor)
    _guard_unlocked(report.id)
    _ensure_week_in(report, actor, week_utils.editable_weeks(today), _EDIT_WINDOW_MESSAGE)
    _validate_tasks(tasks)

    existing: dict[str, list[ReportTask]] = {}
    for task in report.tasks:
        existing.setdefault(task.task_name, []).append(task)

    new_tasks = []
    for data in tasks:
        matches = existing.get(data["task_name"].strip())
        task = matches.pop(0) if matches else ReportTask()
        _apply_task_fields(task, data)
        new_tasks.append(task)

    report.tasks = new_tasks
    _refresh_completion(report)
    db.session.commit()
    logger.info("User %d updated report %d", actor.id, report.id)
    return report


def update_task(actor: User, task_id: int, fields: dict, today: date | None = None) -> ReportTask:
    task = get_task(task_id)
    report = task.report
    _ensure_owner_or_admin(report, actor)
    _guard_unlocked(report.id)
    _ensure_week_in(report, actor, week_utils.editable_weeks(today), _EDIT_WINDOW_MESSAGE)

    data = {
        "task_name": task.task_name,
        "is_completed": task.is_completed,
        "reason_not_done": task.reason_not_done,
        **{day: getattr(task, day) for day in WEEKDAYS},
    }
    data.update({key: value for key, value in fields.items() if value is not None})
    _validate_tasks([data])
    _apply_task_fields(task, data)
    _refresh_completion(report)
    db.session.commit()
    logger.info("User %d updated task %d", actor.id, task.id)
    return task


def delete_task(actor: User, task_id: int, today: date | None = None) -> None:
    task = get_task(task_id)
    report = task.report
    _ensure_owner_or_admin(report, actor)
    _guard_unlocked(report.id)
    _ensure_week_in(report, actor, week_utils.editable_weeks(today), _EDIT_WINDOW_MESSAGE)

    report.tasks.remove(task)
    _refresh_completion(report)
    db.session.commit()
    logger.info("User %d deleted task %d from report %d", actor.id, task_id, report.id)


def delete_report(actor: User, report_id: int, today: date | None = None) -> None:
    """Delete an unlocked report of the current or next work week."""
    report = get_report(report_id)
    _ensure_owner_or_admin(report, actor)
    _guard_unlocked(report.id)
    _ensure_week_in(
        report,
        actor,
        week_utils.deletable_weeks(today),
        "Chỉ có thể xóa báo cáo của tuần hiện tại và tuần tiếp theo",
    )
    db.session.delete(report)
    db.session.commit()
    logger.info("User %d deleted report %d", actor.id, report_id)


def approve_task(manager: User, task_id: int) -> ReportTask:
    """Mark a subordinate's task completed on the manager's authority."""
    task = get_task(task_id)
    evaluation_service.ensure_can_evaluate(manager, task)
    _guard_unlocked(task.report_id)

    task.is_completed = True
    task.reason_not_done = None
    _refresh_completion(task.report)
    db.session.commit()
    logger.info("User %d approved task %d", manager.id, task.id)
    return task


def reject_task(manager: User, task_id: int, reason: str | None = None) -> ReportTask:
    """Mark a subordinate's task not completed, recording who rejected it."""
    task = get_task(task_id)
    evaluation_service.ensure_can_evaluate(manager, task)
    _guard_unlocked(task.report_id)

    task.is_completed = False
    task.reason_not_done = (reason or "").strip() or f"Từ chối bởi {manager.full_name}"
    _refresh_completion(task.report)
    db.session.commit()
    logger.info("User %d rejected task %d", manager.id, task.id)
    return task


# -- Lock job --------------------------------------------------------------


def lock_reports_by_week(week_number: int, year: int) -> int:
    """
    Lock every unlocked report of a week in one bulk UPDATE.

    Idempotent: a second run finds nothing left to lock.

    Returns:
        Number of reports locked by this call.
    """
    result = db.session.execute(
        update(Report)
        .where(
            Report.week_number == week_number,
            Report.year == year,
            Report.is_locked == False,  # noqa: E712
        )
        .values(is_locked=True)
        .execution_options(synchronize_session=False)
    )
    db.session.commit()
    db.session.expire_all()
    logger.info("Locked %d reports for W%d/%d", result.rowcount, week_number, year)
    return result.rowcount


def lock_previous_work_week(today: date | None = None) -> tuple[week_utils.WorkWeek, int]:
    """Lock the work week before the current one; return it with the count."""
    target = week_utils.current_work_week(today).previous()
    return target, lock_reports_by_week(target.week_number, target.year)


def unlock_report(actor: User, report_id: int) -> Report:
    """Administrative unlock of a single report."""
    if not actor.is_admin:
        raise ForbiddenError("Only administrators can unlock reports.")
    report = get_report(report_id)
    report.is_locked = False
    db.session.commit()
    logger.info("User %d unlocked report %d", actor.id, report.id)
    return report
