"""
Task evaluation service — managers reviewing subordinates' tasks.

An evaluation records the manager's verdict next to a snapshot of the
task as the employee submitted it.  Evaluations never modify the task
itself; the approve/reject shortcuts in ``report_service`` do that.

Permission to evaluate:
  - SUPERADMIN may evaluate any task.
  - Everyone else needs a position with ``is_management`` or
    ``can_view_hierarchy``, and the task owner's level must be
    numerically greater than the evaluator's.
"""

import logging

from weeklyreport.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from weeklyreport.extensions import db
from weeklyreport.models.organization import JobPosition, Position
from weeklyreport.models.report import EVALUATION_TYPES, Report, ReportTask, TaskEvaluation
from weeklyreport.models.user import User, UserRole

logger = logging.getLogger(__name__)


def get_evaluation(evaluation_id: int) -> TaskEvaluation:
    evaluation = db.session.get(TaskEvaluation, evaluation_id)
    if evaluation is None:
        raise NotFoundError(f"Evaluation ID {evaluation_id} not found.")
    return evaluation


def _get_task(task_id: int) -> ReportTask:
    task = db.session.get(ReportTask, task_id)
    if task is None:
        raise NotFoundError(f"Task ID {task_id} not found.")
    return task


def ensure_can_evaluate(evaluator: User, task: ReportTask) -> None:
    """
    Raise ``ForbiddenError`` unless ``evaluator`` may judge ``task``.
    """
    if evaluator.role == UserRole.SUPERADMIN.value:
        return
    if not (evaluator.is_management or evaluator.can_view_hierarchy):
        logger.warning(
            "Evaluation denied: user %d has no management permissions", evaluator.id
        )
        raise ForbiddenError("User does not have management permissions.")
    if task.report.user.position_level <= evaluator.position_level:
        logger.warning(
            "Evaluation denied: user %d is not above the owner of task %d",
            evaluator.id,
            task.id,
        )
        raise ForbiddenError("Can only evaluate tasks from subordinates.")


def _check_type(evaluation_type: str) -> None:
    if evaluation_type not in EVALUATION_TYPES:
        raise ValidationError(
            f"Evaluation type must be one of {', '.join(EVALUATION_TYPES)}."
        )


def create_evaluation(
    evaluator: User,
    task_id: int,
    evaluated_is_completed: bool,
    evaluated_reason_not_done: str | None = None,
    evaluator_comment: str | None = None,
    evaluation_type: str = "REVIEW",
) -> TaskEvaluation:
    """
    Record an evaluation, snapshotting the task's current state.

    Raises:
        NotFoundError:  Unknown task.
        ForbiddenError: Evaluator may not judge this task.
        ConflictError:  The evaluator already evaluated this task.
    """
    task = _get_task(task_id)
    ensure_can_evaluate(evaluator, task)
    _check_type(evaluation_type)

    existing = TaskEvaluation.query.filter_by(
        task_id=task.id, evaluator_id=evaluator.id
    ).first()
    if existing is not None:
        raise ConflictError("Evaluation already exists for this task.")

    evaluation = TaskEvaluation(
        task_id=task.id,
        evaluator_id=evaluator.id,
        original_is_completed=task.is_completed,
        original_reason_not_done=task.reason_not_done,
        evaluated_is_completed=evaluated_is_completed,
        evaluated_reason_not_done=evaluated_reason_not_done,
        evaluator_comment=evaluator_comment,
        evaluation_type=evaluation_type,
    )
    db.session.add(evaluation)
    db.session.commit()
    logger.info(
        "User %d evaluated task %d (%s)", evaluator.id, task.id, evaluation_type
    )
    return evaluation


def update_evaluation(evaluator: User, evaluation_id: int, **fields) -> TaskEvaluation:
    """Update verdict fields; the original snapshot is left untouched."""
    evaluation = get_evaluation(evaluation_id)
    if evaluation.evaluator_id != evaluator.id:
        ensure_can_evaluate(evaluator, evaluation.task)
    if fields.get("evaluation_type") is not None:
        _check_type(fields["evaluation_type"])

    for attr in (
        "evaluated_is_completed",
        "evaluated_reason_not_done",
        "evaluator_comment",
        "evaluation_type",
    ):
        if fields.get(attr) is not None:
            setattr(evaluation, attr, fields[attr])
    db.session.commit()
    logger.info("User %d updated evaluation %d", evaluator.id, evaluation.id)
    return evaluation


def delete_evaluation(evaluator: User, evaluation_id: int) -> None:
    evaluation = get_evaluation(evaluation_id)
    if (
        evaluation.evaluator_id != evaluator.id
        and evaluator.role != UserRole.SUPERADMIN.value
    ):
        raise ForbiddenError("Can only delete your own evaluations.")
    db.session.delete(evaluation)
    db.session.commit()
    logger.info("User %d deleted evaluation %d", evaluator.id, evaluation_id)


def get_task_evaluations(task_id: int) -> list[TaskEvaluation]:
    _get_task(task_id)
    return (
        TaskEvaluation.query.filter_by(task_id=task_id)
        .order_by(TaskEvaluation.created_at.desc(), TaskEvaluation.id.desc())
        .all()
    )


def _report_filters(query, week_number=None, year=None, user_id=None):
    if week_number is not None:
        query = query.filter(Report.week_number == week_number)
    if year is not None:
        query = query.filter(Report.year == year)
    if user_id is not None:
        query = query.filter(Report.user_id == user_id)
    return query


def get_evaluations_by_evaluator(
    evaluator_id: int,
    week_number: int | None = None,
    year: int | None = None,
    user_id: int | None = None,
    evaluation_type: str | None = None,
) -> list[TaskEvaluation]:
    query = (
        TaskEvaluation.query.join(ReportTask, TaskEvaluation.task_id == ReportTask.id)
        .join(Report, ReportTask.report_id == Report.id)
        .filter(TaskEvaluation.evaluator_id == evaluator_id)
    )
    query = _report_filters(query, week_number, year, user_id)
    if evaluation_type:
        query = query.filter(TaskEvaluation.evaluation_type == evaluation_type)
    return query.order_by(TaskEvaluation.created_at.desc(), TaskEvaluation.id.desc()).all()


def get_evaluable_tasks(
    manager: User,
    week_number: int | None = None,
    year: int | None = None,
    user_id: int | None = None,
    is_completed: bool | None = None,
) -> list[ReportTask]:
    """
    Tasks the manager may evaluate.

    SUPERADMIN sees all tasks, ADMIN the tasks of their office, and
    managers the tasks of lower-level users in their own department.
    """
    query = (
        ReportTask.query.join(Report, ReportTask.report_id == Report.id)
        .join(User, Report.user_id == User.id)
        .join(JobPosition, User.job_position_id == JobPosition.id)
        .join(Position, JobPosition.position_id == Position.id)
    )
    query = _report_filters(query, week_number, year, user_id)
    if is_completed is not None:
        query = query.filter(ReportTask.is_completed == is_completed)

    if manager.role == UserRole.SUPERADMIN.value:
        pass
    elif manager.role == UserRole.ADMIN.value:
        query = query.filter(User.office_id == manager.office_id)
    else:
        if not (manager.is_management or manager.can_view_hierarchy):
            return []
        if manager.department_id is None:
            return []
        query = query.filter(
            JobPosition.department_id == manager.department_id,
            Position.level > manager.position_level,
        )

    return query.order_by(
        Report.year.desc(),
        Report.week_number.desc(),
        User.last_name,
        ReportTask.id,
    ).all()
