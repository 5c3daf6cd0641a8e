"""
User service — account lookup, provisioning and profile updates.

Enforces the uniqueness of employee codes, e-mails and card ids, keeps
``User.office_id`` in step with the user's job position, and restricts
role changes to SUPERADMIN.
"""

import logging

from werkzeug.security import check_password_hash, generate_password_hash

from weeklyreport.errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from weeklyreport.extensions import db
from weeklyreport.models.organization import JobPosition
from weeklyreport.models.report import Report
from weeklyreport.models.user import ROLE_NAMES, User, UserRole
from weeklyreport.services import organization_service

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


# -- User lookup -----------------------------------------------------------


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User ID {user_id} not found.")
    return user


def get_user_by_login(identifier: str) -> User | None:
    """Return a user by employee code or e-mail (case-insensitive)."""
    identifier = (identifier or "").strip()
    if not identifier:
        return None
    user = User.query.filter_by(employee_code=identifier).first()
    if user is None:
        user = User.query.filter(User.email.ilike(identifier)).first()
    return user


def list_users(
    office_id: int | None = None,
    department_id: int | None = None,
    role: str | None = None,
    search: str | None = None,
    include_inactive: bool = False,
    page: int = 1,
    per_page: int = 20,
):
    """
    Return a paginated list of users, ordered by last name.

    Returns:
        A Flask-SQLAlchemy pagination object.
    """
    query = User.query.order_by(User.last_name, User.first_name)
    if not include_inactive:
        query = query.filter(User.is_active == True)  # noqa: E712
    if office_id is not None:
        query = query.filter(User.office_id == office_id)
    if department_id is not None:
        query = query.join(JobPosition).filter(JobPosition.department_id == department_id)
    if role:
        query = query.filter(User.role == role)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            db.or_(
                User.employee_code.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern),
            )
        )
    return query.paginate(page=page, per_page=per_page, error_out=False)


# -- Validation helpers ----------------------------------------------------


def _check_unique(
    employee_code: str | None = None,
    email: str | None = None,
    card_id: str | None = None,
    exclude_id: int | None = None,
) -> None:
    checks = (
        ("employee_code", employee_code, "Employee code"),
        ("email", email, "Email"),
        ("card_id", card_id, "Card ID"),
    )
    for column, value, label in checks:
        if not value:
            continue
        query = User.query.filter(getattr(User, column) == value)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first() is not None:
            raise ConflictError(f"{label} '{value}' is already in use.")


def _resolve_job_position(job_position_id: int, office_id: int | None) -> JobPosition:
    job_position = organization_service.get_job_position(job_position_id)
    if office_id is not None and job_position.office_id != office_id:
        raise ValidationError(
            "The selected job position does not belong to the selected office."
        )
    return job_position


def _check_password(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )


# -- Provisioning ----------------------------------------------------------


def create_user(
    actor: User | None,
    employee_code: str,
    password: str,
    first_name: str,
    last_name: str,
    job_position_id: int,
    office_id: int | None = None,
    email: str | None = None,
    phone: str | None = None,
    card_id: str | None = None,
    role: str = UserRole.USER.value,
) -> User:
    """
    Create a user account.

    Args:
        actor:  The administrator creating the account (None for seeds
                and CLI use).  Only SUPERADMIN may assign a non-USER role.
        office_id: Optional; when given it must match the job position's
                   office.

    Raises:
        ConflictError:   Duplicate employee code, e-mail or card id.
        ForbiddenError:  A non-SUPERADMIN assigns an elevated role.
        ValidationError: Unknown role, short password, or office mismatch.
    """
    if role not in ROLE_NAMES:
        raise ValidationError(f"Unknown role '{role}'.")
    if (
        actor is not None
        and role != UserRole.USER.value
        and actor.role != UserRole.SUPERADMIN.value
    ):
        raise ForbiddenError("Only SUPERADMIN can assign roles.")
    _check_password(password)
    _check_unique(employee_code=employee_code, email=email, card_id=card_id)
    job_position = _resolve_job_position(job_position_id, office_id)

    user = User(
        employee_code=employee_code,
        email=email or None,
        password_hash=generate_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        phone=phone,
        card_id=card_id or None,
        role=role,
        job_position_id=job_position.id,
        office_id=job_position.office_id,
    )
    db.session.add(user)
    db.session.commit()
    logger.info(
        "Created user %d (%s) by %s",
        user.id,
        employee_code,
        actor.employee_code if actor else "system",
    )
    return user


def update_user(actor: User, user_id: int, **fields) -> User:
    """
    Administrative update of another user's account.

    Role changes require SUPERADMIN.  Changing the job position moves
    the user's office id with it.
    """
    user = get_user(user_id)

    new_role = fields.get("role")
    if new_role is not None and new_role != user.role:
        if actor.role != UserRole.SUPERADMIN.value:
            logger.warning(
                "Role change denied: user %d attempted to set %s on user %d",
                actor.id,
                new_role,
                user.id,
            )
            raise ForbiddenError("Only SUPERADMIN can change user roles.")
        if new_role not in ROLE_NAMES:
            raise ValidationError(f"Unknown role '{new_role}'.")
        user.role = new_role

    _check_unique(
        employee_code=fields.get("employee_code"),
        email=fields.get("email"),
        card_id=fields.get("card_id"),
        exclude_id=user.id,
    )

    if fields.get("job_position_id") is not None or fields.get("office_id") is not None:
        job_position = _resolve_job_position(
            fields.get("job_position_id") or user.job_position_id,
            fields.get("office_id"),
        )
        user.job_position_id = job_position.id
        user.office_id = job_position.office_id

    for attr in ("employee_code", "email", "first_name", "last_name", "phone", "card_id"):
        if fields.get(attr) is not None:
            setattr(user, attr, fields[attr])
    if fields.get("is_active") is not None:
        user.is_active = fields["is_active"]
    if fields.get("password"):
        _check_password(fields["password"])
        user.password_hash = generate_password_hash(fields["password"])

    db.session.commit()
    logger.info("User %d updated by %d", user.id, actor.id)
    return user


def update_profile(user: User, **fields) -> User:
    """Self-service profile update: names, phone and e-mail only."""
    _check_unique(email=fields.get("email"), exclude_id=user.id)
    for attr in ("first_name", "last_name", "phone", "email"):
        if fields.get(attr) is not None:
            setattr(user, attr, fields[attr])
    db.session.commit()
    logger.info("User %d updated own profile", user.id)
    return user


def change_password(user: User, current_password: str, new_password: str) -> None:
    if not check_password_hash(user.password_hash, current_password or ""):
        raise AuthenticationError("Current password is incorrect.")
    _check_password(new_password)
    user.password_hash = generate_password_hash(new_password)
    db.session.commit()
    logger.info("User %d changed password", user.id)


def remove_user(actor: User, user_id: int) -> str:
    """
    Delete a user, or deactivate them if they have reports.

    Returns:
        ``"deactivated"`` or ``"deleted"``.
    """
    user = get_user(user_id)
    if user.id == actor.id:
        raise ValidationError("You cannot remove your own account.")

    if db.session.query(Report.id).filter_by(user_id=user.id).first() is not None:
        user.is_active = False
        db.session.commit()
        logger.info("User %d deactivated by %d", user.id, actor.id)
        return "deactivated"

    db.session.delete(user)
    db.session.commit()
    logger.info("User %d deleted by %d", user_id, actor.id)
    return "deleted"
