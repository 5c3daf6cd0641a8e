"""
Routes for the auth blueprint — login, current profile and password.
"""

from flask import jsonify
from flask_login import current_user, login_required

from weeklyreport import serializers
from weeklyreport.blueprints.auth import bp
from weeklyreport.services import auth_service, user_service
from weeklyreport.utils.request_args import json_body, pick, require


@bp.route("/login", methods=["POST"])
def login():
    """
    Exchange an employee code (or e-mail) and password for a token.

    Body: ``{"employeeCode": ..., "password": ...}``.
    """
    data = json_body()
    require(data, "employeeCode", "password")
    user, token = auth_service.authenticate(data["employeeCode"], data["password"])
    return jsonify(
        accessToken=token,
        tokenType="bearer",
        user=serializers.user_to_dict(user),
    )


@bp.route("/me")
@login_required
def me():
    return jsonify(serializers.user_to_dict(current_user))


@bp.route("/profile", methods=["PATCH"])
@login_required
def update_profile():
    data = json_body()
    user = user_service.update_profile(
        current_user,
        **pick(data, first_name="firstName", last_name="lastName", phone="phone", email="email"),
    )
    return jsonify(serializers.user_to_dict(user))


@bp.route("/change-password", methods=["POST"])
@login_required
def change_password():
    data = json_body()
    require(data, "currentPassword", "newPassword")
    user_service.change_password(current_user, data["currentPassword"], data["newPassword"])
    return jsonify(message="Password changed.")
