"""
User model and role constants.

Role decides *what* a user can administer; the position chain
(job position -> position level and flags) decides *whom* they can
see.  The accessors below walk that chain null-safely so callers can
compare levels without guarding every hop.
"""

import enum
import math

from flask_login import UserMixin

from weeklyreport.extensions import db

# Level reported for users whose job position or position is missing.
# Compares greater than every real level, so such users never outrank anyone.
UNKNOWN_LEVEL = math.inf


class UserRole(str, enum.Enum):
    """Application roles stored on ``User.role``."""

    USER = "USER"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"
    OFFICE_MANAGER = "OFFICE_MANAGER"
    OFFICE_ADMIN = "OFFICE_ADMIN"


ADMIN_ROLES = (UserRole.ADMIN.value, UserRole.SUPERADMIN.value)
ROLE_NAMES = tuple(role.value for role in UserRole)


class User(UserMixin, db.Model):
    """
    Employee account.

    ``office_id`` mirrors ``job_position.office_id`` and is rewritten by
    ``user_service`` whenever the job position changes.  Users with
    reports are deactivated instead of deleted.

    Inherits from ``UserMixin`` to satisfy Flask-Login requirements; the
    ``is_active`` column shadows the mixin property.
    """

    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    employee_code = db.Column(db.String(50), unique=True, nullable=False, index=True)
    email = db.Column(db.String(200), unique=True, nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(30), nullable=True)
    card_id = db.Column(db.String(30), unique=True, nullable=True)
    role = db.Column(db.String(20), nullable=False, default=UserRole.USER.value)
    job_position_id = db.Column(
        db.Integer, db.ForeignKey("job_position.id"), nullable=False, index=True
    )
    office_id = db.Column(
        db.Integer, db.ForeignKey("office.id"), nullable=False, index=True
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(
        db.DateTime, nullable=False, server_default=db.func.current_timestamp()
    )
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        server_default=db.func.current_timestamp(),
        onupdate=db.func.current_timestamp(),
    )

    # -- Relationships -----------------------------------------------------
    job_position = db.relationship("JobPosition", back_populates="users")
    office = db.relationship("Office", back_populates="users")
    reports = db.relationship(
        "Report",
        back_populates="user",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    # ---- Convenience properties ------------------------------------------

    @property
    def full_name(self) -> str:
        """Return the user's full display name."""
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    def has_role(self, *role_names: str) -> bool:
        """Check if the user has any of the given role names."""
        return self.role in role_names

    # ---- Null-safe position chain ----------------------------------------

    @property
    def position(self):
        return self.job_position.position if self.job_position else None

    @property
    def department(self):
        return self.job_position.department if self.job_position else None

    @property
    def department_id(self) -> int | None:
        return self.job_position.department_id if self.job_position else None

    @property
    def position_level(self) -> float:
        """Return the position level, or ``UNKNOWN_LEVEL`` if the chain is broken."""
        position = self.position
        if position is None or position.level is None:
            return UNKNOWN_LEVEL
        return position.level

    @property
    def position_name(self) -> str:
        position = self.position
        return position.name if position else ""

    @property
    def is_management(self) -> bool:
        position = self.position
        return bool(position and position.is_management)

    @property
    def can_view_hierarchy(self) -> bool:
        position = self.position
        return bool(position and position.can_view_hierarchy)

    @property
    def is_reportable(self) -> bool:
        position = self.position
        return bool(position and position.is_reportable)

    def __repr__(self) -> str:
        return f"<User {self.employee_code} ({self.role})>"
