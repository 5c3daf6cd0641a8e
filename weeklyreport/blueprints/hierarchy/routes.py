"""
Routes for the hierarchy blueprint — drill-down statistics.

Every endpoint accepts optional ``weekNumber`` and ``year`` query
parameters and defaults to the current work week.
"""

from flask import jsonify, request
from flask_login import current_user, login_required

from weeklyreport.blueprints.hierarchy import bp
from weeklyreport.errors import ValidationError
from weeklyreport.services import hierarchy_service
from weeklyreport.utils.request_args import week_from_args


@bp.route("/my-view")
@login_required
def my_view():
    return jsonify(hierarchy_service.get_my_hierarchy_view(current_user, week_from_args()))


@bp.route("/offices-overview")
@login_required
def offices_overview():
    return jsonify(hierarchy_service.get_offices_overview(current_user, week_from_args()))


@bp.route("/office/<int:office_id>")
@login_required
def office_details(office_id):
    return jsonify(
        hierarchy_service.get_office_details(current_user, office_id, week_from_args())
    )


@bp.route("/department/<int:department_id>")
@login_required
def department_details(department_id):
    return jsonify(
        hierarchy_service.get_department_details(
            current_user, department_id, week_from_args()
        )
    )


@bp.route("/user/<int:user_id>")
@login_required
def user_details(user_id):
    """One user's recent reports; ``weekNumber`` narrows to a single week."""
    week = week_from_args() if request.args.get("weekNumber") else None
    limit = request.args.get("limit", 10, type=int)
    return jsonify(
        hierarchy_service.get_user_details(current_user, user_id, week=week, limit=limit)
    )


@bp.route("/manager-reports")
@login_required
def manager_reports():
    return jsonify(hierarchy_service.get_manager_reports(current_user, week_from_args()))


@bp.route("/position-hierarchy")
@login_required
def position_hierarchy():
    view_type = request.args.get("view", "mixed")
    return jsonify(
        hierarchy_service.get_position_hierarchy(current_user, week_from_args(), view_type)
    )


@bp.route("/task-completion-trends")
@login_required
def task_completion_trends():
    weeks = request.args.get("weeks", 4, type=int)
    if weeks > 52:
        raise ValidationError("weeks must be at most 52.")
    return jsonify(
        hierarchy_service.get_task_completion_trends(
            current_user,
            week_from_args(),
            weeks=weeks,
            office_id=request.args.get("officeId", type=int),
            department_id=request.args.get("departmentId", type=int),
        )
    )


@bp.route("/incomplete-reasons-analysis")
@login_required
def incomplete_reasons_analysis():
    return jsonify(
        hierarchy_service.get_incomplete_reasons_analysis(
            current_user,
            week_from_args(),
            office_id=request.args.get("officeId", type=int),
            department_id=request.args.get("departmentId", type=int),
        )
    )
