"""
Routes for the statistics blueprint — administrators only.
"""

from flask import jsonify, request
from flask_login import login_required

from weeklyreport.blueprints.statistics import bp
from weeklyreport.decorators import admin_required
from weeklyreport.services import statistics_service
from weeklyreport.utils.request_args import week_from_args


@bp.route("/overview")
@login_required
@admin_required
def overview():
    return jsonify(statistics_service.get_overview(week_from_args()))


@bp.route("/completion-rate")
@login_required
@admin_required
def completion_rate():
    return jsonify(
        statistics_service.get_completion_rates(
            week_from_args(), department_id=request.args.get("departmentId", type=int)
        )
    )


@bp.route("/missing-reports")
@login_required
@admin_required
def missing_reports():
    return jsonify(statistics_service.get_missing_reports(week_from_args()))


@bp.route("/summary")
@login_required
@admin_required
def summary():
    return jsonify(statistics_service.get_summary_report(week_from_args()))


@bp.route("/tasks")
@login_required
@admin_required
def task_statistics():
    return jsonify(statistics_service.get_task_statistics(week_from_args()))
