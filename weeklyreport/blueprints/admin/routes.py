"""
Routes for the admin blueprint — user management.

All routes require ADMIN or SUPERADMIN; assigning or changing roles is
further restricted to SUPERADMIN inside ``user_service``.
"""

from flask import current_app, jsonify, request
from flask_login import current_user, login_required

from weeklyreport import serializers
from weeklyreport.blueprints.admin import bp
from weeklyreport.decorators import admin_required
from weeklyreport.services import user_service
from weeklyreport.utils.request_args import bool_arg, json_body, pick, require

_USER_FIELDS = {
    "employee_code": "employeeCode",
    "password": "password",
    "first_name": "firstName",
    "last_name": "lastName",
    "job_position_id": "jobPositionId",
    "office_id": "officeId",
    "email": "email",
    "phone": "phone",
    "card_id": "cardId",
    "role": "role",
}


@bp.route("/users")
@login_required
@admin_required
def list_users():
    """Paginated user list with optional office, department, role and text filters."""
    page = request.args.get("page", 1, type=int)
    per_page = request.args.get(
        "limit", current_app.config["DEFAULT_PAGE_SIZE"], type=int
    )
    users = user_service.list_users(
        office_id=request.args.get("officeId", type=int),
        department_id=request.args.get("departmentId", type=int),
        role=request.args.get("role"),
        search=request.args.get("search"),
        include_inactive=bool(bool_arg("includeInactive")),
        page=page,
        per_page=per_page,
    )
    return jsonify(serializers.page_to_dict(users, serializers.user_to_dict))


@bp.route("/users/<int:user_id>")
@login_required
@admin_required
def get_user(user_id):
    return jsonify(serializers.user_to_dict(user_service.get_user(user_id)))


@bp.route("/users", methods=["POST"])
@login_required
@admin_required
def create_user():
    data = json_body()
    require(data, "employeeCode", "password", "firstName", "lastName", "jobPositionId")
    user = user_service.create_user(current_user, **pick(data, **_USER_FIELDS))
    return jsonify(serializers.user_to_dict(user)), 201


@bp.route("/users/<int:user_id>", methods=["PATCH"])
@login_required
@admin_required
def update_user(user_id):
    data = json_body()
    fields = pick(data, is_active="isActive", **_USER_FIELDS)
    user = user_service.update_user(current_user, user_id, **fields)
    return jsonify(serializers.user_to_dict(user))


@bp.route("/users/<int:user_id>", methods=["DELETE"])
@login_required
@admin_required
def remove_user(user_id):
    """Delete the user, or deactivate them when they have reports."""
    outcome = user_service.remove_user(current_user, user_id)
    return jsonify(id=user_id, result=outcome)
