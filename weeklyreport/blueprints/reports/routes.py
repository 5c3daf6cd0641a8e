"""
Routes for the reports blueprint — weekly reports, tasks and locking.

Ownership, edit windows and the lock guard are enforced in
``report_service``; routes only translate JSON to service arguments.
"""

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from weeklyreport import serializers
from weeklyreport.blueprints.reports import bp
from weeklyreport.decorators import admin_required
from weeklyreport.errors import NotFoundError, ValidationError
from weeklyreport.models.report import WEEKDAYS
from weeklyreport.services import report_service
from weeklyreport.utils.request_args import bool_arg, json_body, require, week_from_args


def _task_from_json(data: dict) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Each task must be a JSON object.")
    task = {
        "task_name": data.get("taskName"),
        "is_completed": data.get("isCompleted"),
        "reason_not_done": data.get("reasonNotDone"),
    }
    task.update({day: data.get(day) for day in WEEKDAYS})
    return task


def _tasks_from_body(data: dict) -> list[dict]:
    tasks = data.get("tasks")
    if not isinstance(tasks, list):
        raise ValidationError("tasks must be a list.")
    return [_task_from_json(task) for task in tasks]


# =========================================================================
# Own reports
# =========================================================================


@bp.route("", methods=["POST"])
@login_required
def create_report():
    """
    Create the caller's report for a work week.

    Body: ``{"weekNumber", "year", "tasks": [{"taskName", "monday", ...,
    "isCompleted", "reasonNotDone"}]}``.
    """
    data = json_body()
    require(data, "weekNumber", "year")
    report = report_service.create_report(
        current_user,
        int(data["weekNumber"]),
        int(data["year"]),
        _tasks_from_body(data),
    )
    return jsonify(serializers.report_to_dict(report)), 201


@bp.route("/my")
@login_required
def my_reports():
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get("limit", 10, type=int)
    reports = report_service.get_my_reports(
        current_user,
        page=page,
        per_page=per_page,
        year=request.args.get("year", type=int),
    )
    return jsonify(serializers.page_to_dict(reports, serializers.report_to_dict))


@bp.route("/current-week")
@login_required
def current_week_report():
    report = report_service.get_current_week_report(current_user)
    return jsonify(serializers.report_to_dict(report) if report else None)


@bp.route("/week/<int:year>/<int:week_number>")
@login_required
def report_by_week(year, week_number):
    """The caller's report for a week; 404 when none exists."""
    report = report_service.get_report_by_week(current_user.id, week_number, year)
    if report is None:
        raise NotFoundError(f"No report for week {week_number}/{year}.")
    return jsonify(serializers.report_to_dict(report))


@bp.route("/<int:report_id>")
@login_required
def get_report(report_id):
    report = report_service.get_report_for_viewer(current_user, report_id)
    return jsonify(serializers.report_to_dict(report, include_user=True))


@bp.route("/<int:report_id>", methods=["PUT"])
@login_required
def update_report(report_id):
    data = json_body()
    report = report_service.update_report(current_user, report_id, _tasks_from_body(data))
    return jsonify(serializers.report_to_dict(report))


@bp.route("/<int:report_id>", methods=["DELETE"])
@login_required
def delete_report(report_id):
    report_service.delete_report(current_user, report_id)
    return "", 204


# =========================================================================
# Tasks
# =========================================================================


@bp.route("/tasks/<int:task_id>", methods=["PATCH"])
@login_required
def update_task(task_id):
    # Absent keys come through as None and keep their stored values.
    task = report_service.update_task(current_user, task_id, _task_from_json(json_body()))
    return jsonify(serializers.task_to_dict(task))


@bp.route("/tasks/<int:task_id>", methods=["DELETE"])
@login_required
def delete_task(task_id):
    report_service.delete_task(current_user, task_id)
    return "", 204


@bp.route("/tasks/<int:task_id>/approve", methods=["POST"])
@login_required
def approve_task(task_id):
    task = report_service.approve_task(current_user, task_id)
    return jsonify(serializers.task_to_dict(task))


@bp.route("/tasks/<int:task_id>/reject", methods=["POST"])
@login_required
def reject_task(task_id):
    data = request.get_json(silent=True) or {}
    task = report_service.reject_task(current_user, task_id, data.get("reason"))
    return jsonify(serializers.task_to_dict(task))


# =========================================================================
# Listing and administration
# =========================================================================


@bp.route("")
@login_required
def list_reports():
    """Reports visible to the caller, newest first, with optional filters."""
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get(
        "limit", current_app.config["DEFAULT_PAGE_SIZE"], type=int
    )
    reports = report_service.list_reports(
        current_user,
        week_number=request.args.get("weekNumber", type=int),
        year=request.args.get("year", type=int),
        office_id=request.args.get("officeId", type=int),
        department_id=request.args.get("departmentId", type=int),
        user_id=request.args.get("userId", type=int),
        is_completed=bool_arg("isCompleted"),
        is_locked=bool_arg("isLocked"),
        page=page,
        per_page=per_page,
    )
    return jsonify(
        serializers.page_to_dict(
            reports,
            lambda report: serializers.report_to_dict(
                report, include_tasks=False, include_user=True
            ),
        )
    )


@bp.route("/stats")
@login_required
@admin_required
def report_stats():
    return jsonify(
        report_service.get_report_stats(
            request.args.get("weekNumber", type=int),
            request.args.get("year", type=int),
        )
    )


@bp.route("/lock", methods=["POST"])
@login_required
@admin_required
def lock_week():
    """Lock every report of a week (defaults to the current work week)."""
    week = week_from_args()
    count = report_service.lock_reports_by_week(week.week_number, week.year)
    return jsonify(weekNumber=week.week_number, year=week.year, lockedCount=count)


@bp.route("/<int:report_id>/unlock", methods=["POST"])
@login_required
@admin_required
def unlock_report(report_id):
    report = report_service.unlock_report(current_user, report_id)
    return jsonify(serializers.report_to_dict(report, include_tasks=False))
