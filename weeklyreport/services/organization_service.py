"""
Organization service — offices, departments, positions and job positions.

Reference data is administered here and nowhere else.  Lookups raise
``NotFoundError`` for missing rows; deletes raise ``ConflictError``
while the row is still referenced.  Job positions always copy their
department's office id so the denormalized ``office_id`` stays true.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func

from weeklyreport.errors import ConflictError, NotFoundError, ValidationError
from weeklyreport.extensions import db
from weeklyreport.models.organization import (
    OFFICE_TYPES,
    Department,
    JobPosition,
    Office,
    Position,
)
from weeklyreport.models.user import User

logger = logging.getLogger(__name__)


# -- Lookups ---------------------------------------------------------------


def get_office(office_id: int) -> Office:
    office = db.session.get(Office, office_id)
    if office is None:
        raise NotFoundError(f"Office ID {office_id} not found.")
    return office


def get_department(department_id: int) -> Department:
    department = db.session.get(Department, department_id)
    if department is None:
        raise NotFoundError(f"Department ID {department_id} not found.")
    return department


def get_position(position_id: int) -> Position:
    position = db.session.get(Position, position_id)
    if position is None:
        raise NotFoundError(f"Position ID {position_id} not found.")
    return position


def get_job_position(job_position_id: int) -> JobPosition:
    job_position = db.session.get(JobPosition, job_position_id)
    if job_position is None:
        raise NotFoundError(f"Job position ID {job_position_id} not found.")
    return job_position


@dataclass
class UserChain:
    """A user's resolved organization chain; any hop may be None."""

    user: User
    job_position: JobPosition | None
    position: Position | None
    department: Department | None
    office: Office | None


def get_user_chain(user_id: int) -> UserChain:
    """
    Resolve job position, position, department and office for a user.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User ID {user_id} not found.")
    department = user.department
    return UserChain(
        user=user,
        job_position=user.job_position,
        position=user.position,
        department=department,
        office=department.office if department else user.office,
    )


# -- Offices ---------------------------------------------------------------


def list_offices() -> list[dict]:
    """Return all offices ordered by name with department and user counts."""
    dept_counts = dict(
        db.session.query(Department.office_id, func.count(Department.id))
        .group_by(Department.office_id)
        .all()
    )
    user_counts = dict(
        db.session.query(User.office_id, func.count(User.id))
        .filter(User.is_active == True)  # noqa: E712
        .group_by(User.office_id)
        .all()
    )
    return [
        {
            "office": office,
            "departmentCount": dept_counts.get(office.id, 0),
            "userCount": user_counts.get(office.id, 0),
        }
        for office in Office.query.order_by(Office.name).all()
    ]


def create_office(name: str, type: str = "HEAD_OFFICE", description: str | None = None) -> Office:
    if type not in OFFICE_TYPES:
        raise ValidationError(f"Office type must be one of {', '.join(OFFICE_TYPES)}.")
    if Office.query.filter_by(name=name).first() is not None:
        raise ConflictError(f"Office '{name}' already exists.")

    office = Office(name=name, type=type, description=description)
    db.session.add(office)
    db.session.commit()
    logger.info("Created office %d (%s)", office.id, office.name)
    return office


def update_office(office_id: int, **fields) -> Office:
    office = get_office(office_id)
    name = fields.get("name")
    if name and name != office.name:
        if Office.query.filter(Office.name == name, Office.id != office_id).first():
            raise ConflictError(f"Office '{name}' already exists.")
    if "type" in fields and fields["type"] not in OFFICE_TYPES:
        raise ValidationError(f"Office type must be one of {', '.join(OFFICE_TYPES)}.")

    for attr in ("name", "type", "description"):
        if attr in fields and fields[attr] is not None:
            setattr(office, attr, fields[attr])
    db.session.commit()
    logger.info("Updated office %d", office.id)
    return office


def delete_office(office_id: int) -> None:
    office = get_office(office_id)
    if office.departments.count() > 0 or office.users.count() > 0:
        raise ConflictError(
            "Cannot delete office with existing departments or users."
        )
    db.session.delete(office)
    db.session.commit()
    logger.info("Deleted office %d", office_id)


# -- Departments -----------------------------------------------------------


def list_departments(office_id: int | None = None) -> list[Department]:
    """Return departments ordered by office name then department name."""
    query = Department.query.join(Office).order_by(Office.name, Department.name)
    if office_id is not None:
        query = query.filter(Department.office_id == office_id)
    return query.all()


def _check_department_name(name: str, office_id: int, exclude_id: int | None = None):
    query = Department.query.filter_by(name=name, office_id=office_id)
    if exclude_id is not None:
        query = query.filter(Department.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(
            f"Department '{name}' already exists in office ID {office_id}."
        )


def create_department(name: str, office_id: int, description: str | None = None) -> Department:
    get_office(office_id)
    _check_department_name(name, office_id)

    department = Department(name=name, office_id=office_id, description=description)
    db.session.add(department)
    db.session.commit()
    logger.info("Created department %d (%s) in office %d", department.id, name, office_id)
    return department


def update_department(department_id: int, **fields) -> Department:
    """
    Update a department.  Moving it to another office also moves the
    denormalized office id of its job positions and their users.
    """
    department = get_department(department_id)
    office_id = fields.get("office_id") or department.office_id
    name = fields.get("name") or department.name
    if office_id != department.office_id:
        get_office(office_id)
    if office_id != department.office_id or name != department.name:
        _check_department_name(name, office_id, exclude_id=department_id)

    moved = office_id != department.office_id
    department.name = name
    department.office_id = office_id
    if fields.get("description") is not None:
        department.description = fields["description"]

    if moved:
        for job_position in department.job_positions:
            job_position.office_id = office_id
            for user in job_position.users:
                user.office_id = office_id

    db.session.commit()
    logger.info("Updated department %d", department.id)
    return department


def delete_department(department_id: int) -> None:
    department = get_department(department_id)
    if department.job_positions.count() > 0:
        raise ConflictError("Cannot delete department with existing job positions.")
    db.session.delete(department)
    db.session.commit()
    logger.info("Deleted department %d", department_id)


# -- Positions -------------------------------------------------------------


def list_positions() -> list[Position]:
    """Return positions ordered by level, then name."""
    return Position.query.order_by(Position.level, Position.name).all()


def create_position(
    name: str,
    level: int,
    description: str | None = None,
    is_management: bool = False,
    can_view_hierarchy: bool = False,
    is_reportable: bool = True,
) -> Position:
    if level is None or level < 0:
        raise ValidationError("Position level must be a non-negative integer.")
    if Position.query.filter_by(name=name).first() is not None:
        raise ConflictError(f"Position '{name}' already exists.")

    position = Position(
        name=name,
        level=level,
        description=description,
        is_management=is_management,
        can_view_hierarchy=can_view_hierarchy,
        is_reportable=is_reportable,
    )
    db.session.add(position)
    db.session.commit()
    logger.info("Created position %d (%s, level %d)", position.id, name, level)
    return position


def update_position(position_id: int, **fields) -> Position:
    position = get_position(position_id)
    name = fields.get("name")
    if name and name != position.name:
        if Position.query.filter(Position.name == name, Position.id != position_id).first():
            raise ConflictError(f"Position '{name}' already exists.")
    if fields.get("level") is not None and fields["level"] < 0:
        raise ValidationError("Position level must be a non-negative integer.")

    for attr in (
        "name",
        "description",
        "level",
        "is_management",
        "can_view_hierarchy",
        "is_reportable",
    ):
        if fields.get(attr) is not None:
            setattr(position, attr, fields[attr])

    # Job position codes embed the position name.
    if name:
        for job_position in position.job_positions:
            job_position.code = generate_job_position_code(
                position.name, job_position.department.name, job_position.job_name
            )

    db.session.commit()
    logger.info("Updated position %d", position.id)
    return position


def delete_position(position_id: int) -> None:
    position = get_position(position_id)
    if position.job_positions.count() > 0:
        raise ConflictError("Cannot delete position with existing job positions.")
    db.session.delete(position)
    db.session.commit()
    logger.info("Deleted position %d", position_id)


# -- Job positions ---------------------------------------------------------


def generate_job_position_code(
    position_name: str, department_name: str, job_name: str
) -> str:
    """
    Derive a job position code.

    ``("Trưởng phòng", "Phòng Kinh doanh", "Bán hàng")`` -> ``"TR_KINH_BÁN"``.
    Format: first two letters of the position, first four letters of
    the department without its "Phòng " prefix, first four letters of
    the job name, each upper-cased and joined by underscores.
    """
    position_code = position_name[:2].upper()
    department_code = department_name.replace("Phòng ", "", 1)[:4].upper()
    job_code = job_name[:4].upper()
    return f"{position_code}_{department_code}_{job_code}"


def list_job_positions(
    department_id: int | None = None,
    position_id: int | None = None,
    office_id: int | None = None,
    include_inactive: bool = False,
) -> list[JobPosition]:
    query = JobPosition.query.join(Position).order_by(Position.level, JobPosition.job_name)
    if not include_inactive:
        query = query.filter(JobPosition.is_active == True)  # noqa: E712
    if department_id is not None:
        query = query.filter(JobPosition.department_id == department_id)
    if position_id is not None:
        query = query.filter(JobPosition.position_id == position_id)
    if office_id is not None:
        query = query.filter(JobPosition.office_id == office_id)
    return query.all()


def _check_job_position_unique(
    position_id: int, job_name: str, department_id: int, exclude_id: int | None = None
):
    query = JobPosition.query.filter_by(
        position_id=position_id, job_name=job_name, department_id=department_id
    )
    if exclude_id is not None:
        query = query.filter(JobPosition.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Job position combination already exists.")


def create_job_position(
    job_name: str,
    position_id: int,
    department_id: int,
    description: str | None = None,
    is_active: bool = True,
) -> JobPosition:
    """
    Create a job position; ``code`` and ``office_id`` are derived.

    Raises:
        ConflictError: If (position, job name, department) already exists.
        NotFoundError: If the position or department does not exist.
    """
    _check_job_position_unique(position_id, job_name, department_id)
    position = get_position(position_id)
    department = get_department(department_id)

    job_position = JobPosition(
        job_name=job_name,
        code=generate_job_position_code(position.name, department.name, job_name),
        description=description,
        position_id=position.id,
        department_id=department.id,
        office_id=department.office_id,
        is_active=is_active,
    )
    db.session.add(job_position)
    db.session.commit()
    logger.info("Created job position %d (%s)", job_position.id, job_position.code)
    return job_position


def update_job_position(job_position_id: int, **fields) -> JobPosition:
    job_position = get_job_position(job_position_id)

    job_name = fields.get("job_name") or job_position.job_name
    position_id = fields.get("position_id") or job_position.position_id
    department_id = fields.get("department_id") or job_position.department_id
    core_changed = (
        job_name != job_position.job_name
        or position_id != job_position.position_id
        or department_id != job_position.department_id
    )

    if core_changed:
        _check_job_position_unique(
            position_id, job_name, department_id, exclude_id=job_position_id
        )
        position = get_position(position_id)
        department = get_department(department_id)
        job_position.job_name = job_name
        job_position.position_id = position.id
        job_position.department_id = department.id
        job_position.code = generate_job_position_code(
            position.name, department.name, job_name
        )
        if job_position.office_id != department.office_id:
            job_position.office_id = department.office_id
            for user in job_position.users:
                user.office_id = department.office_id

    if fields.get("description") is not None:
        job_position.description = fields["description"]
    if fields.get("is_active") is not None:
        job_position.is_active = fields["is_active"]

    db.session.commit()
    logger.info("Updated job position %d", job_position.id)
    return job_position


def delete_job_position(job_position_id: int) -> None:
    job_position = get_job_position(job_position_id)
    if job_position.users.count() > 0:
        raise ConflictError("Cannot delete job position with assigned users.")
    db.session.delete(job_position)
    db.session.commit()
    logger.info("Deleted job position %d", job_position_id)


# -- Tree ------------------------------------------------------------------


def get_organization_tree() -> list[dict]:
    """
    Return offices -> departments -> job positions with active user counts.
    """
    user_counts = dict(
        db.session.query(User.job_position_id, func.count(User.id))
        .filter(User.is_active == True)  # noqa: E712
        .group_by(User.job_position_id)
        .all()
    )

    tree = []
    for office in Office.query.order_by(Office.name).all():
        departments = []
        for department in office.departments.order_by(Department.name):
            job_positions = [
                {
                    "id": jp.id,
                    "jobName": jp.job_name,
                    "code": jp.code,
                    "positionId": jp.position_id,
                    "positionName": jp.position.name,
                    "level": jp.position.level,
                    "userCount": user_counts.get(jp.id, 0),
                }
                for jp in department.job_positions.filter_by(is_active=True).order_by(
                    JobPosition.job_name
                )
            ]
            departments.append(
                {
                    "id": department.id,
                    "name": department.name,
                    "jobPositions": job_positions,
                    "userCount": sum(jp["userCount"] for jp in job_positions),
                }
            )
        tree.append(
            {
                "id": office.id,
                "name": office.name,
                "type": office.type,
                "departments": departments,
                "userCount": sum(d["userCount"] for d in departments),
            }
        )
    return tree
