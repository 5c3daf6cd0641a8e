"""
Routes for the ranking blueprint.

``periodWeeks`` defaults to ``DEFAULT_RANKING_PERIOD_WEEKS``; the period
ends at ``weekNumber``/``year`` (the current work week by default).
"""

from flask import jsonify, request
from flask_login import current_user, login_required

from weeklyreport.blueprints.ranking import bp
from weeklyreport.decorators import admin_required
from weeklyreport.services import ranking_service
from weeklyreport.utils.request_args import week_from_args


def _period_weeks():
    return request.args.get("periodWeeks", type=int)


@bp.route("/employees")
@login_required
def employee_ranking():
    return jsonify(
        ranking_service.get_employee_ranking(
            current_user,
            week_from_args(),
            period_weeks=_period_weeks(),
            employee_id=request.args.get("employeeId", type=int),
        )
    )


@bp.route("/departments")
@login_required
@admin_required
def department_ranking():
    return jsonify(
        ranking_service.get_department_ranking(
            current_user,
            week_from_args(),
            period_weeks=_period_weeks(),
            department_id=request.args.get("departmentId", type=int),
        )
    )


@bp.route("/offices")
@login_required
@admin_required
def office_ranking():
    return jsonify(
        ranking_service.get_office_ranking(
            current_user,
            week_from_args(),
            period_weeks=_period_weeks(),
            office_id=request.args.get("officeId", type=int),
        )
    )


@bp.route("/overall")
@login_required
@admin_required
def overall_ranking():
    return jsonify(
        ranking_service.get_overall_ranking(
            current_user, week_from_args(), period_weeks=_period_weeks()
        )
    )
