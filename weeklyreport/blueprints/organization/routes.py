"""
Routes for the organization blueprint — offices, departments, positions
and job positions.

Reads are open to any signed-in user; writes require ADMIN or SUPERADMIN.
"""

from flask import jsonify, request
from flask_login import login_required

from weeklyreport import serializers
from weeklyreport.blueprints.organization import bp
from weeklyreport.decorators import admin_required
from weeklyreport.services import organization_service
from weeklyreport.utils.request_args import bool_arg, json_body, pick, require


# =========================================================================
# Offices
# =========================================================================


@bp.route("/offices")
@login_required
def list_offices():
    return jsonify(
        [
            {
                **serializers.office_to_dict(entry["office"]),
                "departmentCount": entry["departmentCount"],
                "userCount": entry["userCount"],
            }
            for entry in organization_service.list_offices()
        ]
    )


@bp.route("/offices/<int:office_id>")
@login_required
def get_office(office_id):
    return jsonify(serializers.office_to_dict(organization_service.get_office(office_id)))


@bp.route("/offices", methods=["POST"])
@login_required
@admin_required
def create_office():
    data = json_body()
    require(data, "name")
    office = organization_service.create_office(
        **pick(data, name="name", type="type", description="description")
    )
    return jsonify(serializers.office_to_dict(office)), 201


@bp.route("/offices/<int:office_id>", methods=["PATCH"])
@login_required
@admin_required
def update_office(office_id):
    data = json_body()
    office = organization_service.update_office(
        office_id, **pick(data, name="name", type="type", description="description")
    )
    return jsonify(serializers.office_to_dict(office))


@bp.route("/offices/<int:office_id>", methods=["DELETE"])
@login_required
@admin_required
def delete_office(office_id):
    organization_service.delete_office(office_id)
    return "", 204


# =========================================================================
# Departments
# =========================================================================


@bp.route("/departments")
@login_required
def list_departments():
    office_id = request.args.get("officeId", type=int)
    departments = organization_service.list_departments(office_id=office_id)
    return jsonify([serializers.department_to_dict(d) for d in departments])


@bp.route("/departments/<int:department_id>")
@login_required
def get_department(department_id):
    department = organization_service.get_department(department_id)
    return jsonify(serializers.department_to_dict(department))


@bp.route("/departments", methods=["POST"])
@login_required
@admin_required
def create_department():
    data = json_body()
    require(data, "name", "officeId")
    department = organization_service.create_department(
        **pick(data, name="name", office_id="officeId", description="description")
    )
    return jsonify(serializers.department_to_dict(department)), 201


@bp.route("/departments/<int:department_id>", methods=["PATCH"])
@login_required
@admin_required
def update_department(department_id):
    data = json_body()
    department = organization_service.update_department(
        department_id,
        **pick(data, name="name", office_id="officeId", description="description"),
    )
    return jsonify(serializers.department_to_dict(department))


@bp.route("/departments/<int:department_id>", methods=["DELETE"])
@login_required
@admin_required
def delete_department(department_id):
    organization_service.delete_department(department_id)
    return "", 204


# =========================================================================
# Positions
# =========================================================================

_POSITION_FIELDS = {
    "name": "name",
    "level": "level",
    "description": "description",
    "is_management": "isManagement",
    "can_view_hierarchy": "canViewHierarchy",
    "is_reportable": "isReportable",
}


@bp.route("/positions")
@login_required
def list_positions():
    return jsonify(
        [serializers.position_to_dict(p) for p in organization_service.list_positions()]
    )


@bp.route("/positions/<int:position_id>")
@login_required
def get_position(position_id):
    return jsonify(
        serializers.position_to_dict(organization_service.get_position(position_id))
    )


@bp.route("/positions", methods=["POST"])
@login_required
@admin_required
def create_position():
    data = json_body()
    require(data, "name", "level")
    position = organization_service.create_position(**pick(data, **_POSITION_FIELDS))
    return jsonify(serializers.position_to_dict(position)), 201


@bp.route("/positions/<int:position_id>", methods=["PATCH"])
@login_required
@admin_required
def update_position(position_id):
    data = json_body()
    position = organization_service.update_position(
        position_id, **pick(data, **_POSITION_FIELDS)
    )
    return jsonify(serializers.position_to_dict(position))


@bp.route("/positions/<int:position_id>", methods=["DELETE"])
@login_required
@admin_required
def delete_position(position_id):
    organization_service.delete_position(position_id)
    return "", 204


# =========================================================================
# Job positions
# =========================================================================

_JOB_POSITION_FIELDS = {
    "job_name": "jobName",
    "position_id": "positionId",
    "department_id": "departmentId",
    "description": "description",
    "is_active": "isActive",
}


@bp.route("/job-positions")
@login_required
def list_job_positions():
    job_positions = organization_service.list_job_positions(
        department_id=request.args.get("departmentId", type=int),
        position_id=request.args.get("positionId", type=int),
        office_id=request.args.get("officeId", type=int),
        include_inactive=bool(bool_arg("includeInactive")),
    )
    return jsonify([serializers.job_position_to_dict(jp) for jp in job_positions])


@bp.route("/job-positions/<int:job_position_id>")
@login_required
def get_job_position(job_position_id):
    job_position = organization_service.get_job_position(job_position_id)
    return jsonify(serializers.job_position_to_dict(job_position))


@bp.route("/job-positions", methods=["POST"])
@login_required
@admin_required
def create_job_position():
    data = json_body()
    require(data, "jobName", "positionId", "departmentId")
    job_position = organization_service.create_job_position(
        **pick(data, **_JOB_POSITION_FIELDS)
    )
    return jsonify(serializers.job_position_to_dict(job_position)), 201


@bp.route("/job-positions/<int:job_position_id>", methods=["PATCH"])
@login_required
@admin_required
def update_job_position(job_position_id):
    data = json_body()
    job_position = organization_service.update_job_position(
        job_position_id, **pick(data, **_JOB_POSITION_FIELDS)
    )
    return jsonify(serializers.job_position_to_dict(job_position))


@bp.route("/job-positions/<int:job_position_id>", methods=["DELETE"])
@login_required
@admin_required
def delete_job_position(job_position_id):
    organization_service.delete_job_position(job_position_id)
    return "", 204


# =========================================================================
# Tree
# =========================================================================


@bp.route("/tree")
@login_required
def organization_tree():
    return jsonify(organization_service.get_organization_tree())
