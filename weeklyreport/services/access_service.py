"""
Access filter builder — derive which users a viewer may see.

``build_access_filter`` is the single enforcement point for data
visibility.  It returns one of the scope descriptors below; each can
narrow a ``User`` query (``apply``) and answer membership questions
(``allows``, ``covers_department``, ``covers_office``) so services never
repeat role/position checks.

Decision order:
  1. ADMIN / SUPERADMIN          -> Unrestricted
  2. OFFICE_MANAGER              -> SameOffice
  3. OFFICE_ADMIN                -> SameDepartment
  4. management position         -> SubordinateSet (resolver-expanded)
  5. can_view_hierarchy position -> SameDepartmentNonManagement
  6. everyone else               -> SelfOnly
"""

import logging
from dataclasses import dataclass

from sqlalchemy import false, select

from weeklyreport.errors import ForbiddenError, NotFoundError
from weeklyreport.extensions import db
from weeklyreport.models.organization import JobPosition, Position
from weeklyreport.models.user import ADMIN_ROLES, User, UserRole
from weeklyreport.services import subordinate_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Unrestricted:
    kind = "UNRESTRICTED"

    def apply(self, query):
        return query

    def allows(self, user: User) -> bool:
        return True

    def covers_department(self, department) -> bool:
        return True

    def covers_office(self, office) -> bool:
        return True


@dataclass(frozen=True)
class SameOffice:
    office_id: int
    kind = "SAME_OFFICE"

    def apply(self, query):
        return query.filter(User.office_id == self.office_id)

    def allows(self, user: User) -> bool:
        return user.office_id == self.office_id

    def covers_department(self, department) -> bool:
        return department.office_id == self.office_id

    def covers_office(self, office) -> bool:
        return office.id == self.office_id


@dataclass(frozen=True)
class SameDepartment:
    department_id: int | None
    kind = "SAME_DEPARTMENT"

    def apply(self, query):
        if self.department_id is None:
            return query.filter(false())
        return query.filter(
            User.job_position_id.in_(
                select(JobPosition.id)
                .where(JobPosition.department_id == self.department_id)
                .correlate(None)
            )
        )

    def allows(self, user: User) -> bool:
        return self.department_id is not None and user.department_id == self.department_id

    def covers_department(self, department) -> bool:
        return self.department_id is not None and department.id == self.department_id

    def covers_office(self, office) -> bool:
        return False


@dataclass(frozen=True)
class SameDepartmentNonManagement(SameDepartment):
    """Same-department peers whose own position is not management."""

    kind = "SAME_DEPARTMENT_NON_MANAGEMENT"

    def apply(self, query):
        if self.department_id is None:
            return query.filter(false())
        return query.filter(
            User.job_position_id.in_(
                select(JobPosition.id)
                .join(Position, JobPosition.position_id == Position.id)
                .where(
                    JobPosition.department_id == self.department_id,
                    Position.is_management == False,  # noqa: E712
                )
                .correlate(None)
            )
        )

    def allows(self, user: User) -> bool:
        return super().allows(user) and not user.is_management


@dataclass(frozen=True)
class SubordinateSet:
    """Explicit user ids; an empty set matches nothing."""

    user_ids: frozenset
    kind = "SUBORDINATE_SET"

    def apply(self, query):
        if not self.user_ids:
            return query.filter(false())
        return query.filter(User.id.in_(sorted(self.user_ids)))

    def allows(self, user: User) -> bool:
        return user.id in self.user_ids

    def covers_department(self, department) -> bool:
        return False

    def covers_office(self, office) -> bool:
        return False


@dataclass(frozen=True)
class SelfOnly:
    user_id: int
    kind = "SELF_ONLY"

    def apply(self, query):
        return query.filter(User.id == self.user_id)

    def allows(self, user: User) -> bool:
        return user.id == self.user_id

    def covers_department(self, department) -> bool:
        return False

    def covers_office(self, office) -> bool:
        return False


def build_access_filter(viewer_user_id: int, viewer_role: str | None = None):
    """
    Derive the visibility scope of a viewer.

    Args:
        viewer_user_id: Primary key of the requesting user.
        viewer_role:    Role to evaluate; defaults to the stored role.

    Returns:
        One of the scope descriptors defined in this module.

    Raises:
        NotFoundError: If the viewer does not exist.
    """
    viewer = db.session.get(User, viewer_user_id)
    if viewer is None:
        raise NotFoundError(f"User ID {viewer_user_id} not found.")
    role = viewer_role or viewer.role

    if role in ADMIN_ROLES:
        return Unrestricted()
    if role == UserRole.OFFICE_MANAGER.value:
        return SameOffice(office_id=viewer.office_id)
    if role == UserRole.OFFICE_ADMIN.value:
        return SameDepartment(department_id=viewer.department_id)
    if viewer.is_management:
        subordinates = subordinate_service.resolve_subordinates(viewer.id)
        return SubordinateSet(user_ids=frozenset(user.id for user in subordinates))
    if viewer.can_view_hierarchy:
        return SameDepartmentNonManagement(department_id=viewer.department_id)
    return SelfOnly(user_id=viewer.id)


def visible_users_query(viewer: User, include_inactive: bool = False, query=None):
    """
    Narrow a query to the users ``viewer`` may see.

    Args:
        query: Any query that selects or joins ``User``; defaults to
               ``User.query``.
    """
    scope = build_access_filter(viewer.id, viewer.role)
    if query is None:
        query = User.query
    if not include_inactive:
        query = query.filter(User.is_active == True)  # noqa: E712
    return scope.apply(query)


def ensure_can_access_user(viewer: User, target: User) -> None:
    """Raise ``ForbiddenError`` unless the viewer is the target or may see them."""
    if viewer.id == target.id:
        return
    if not build_access_filter(viewer.id, viewer.role).allows(target):
        logger.warning("Access denied: user %d requested user %d", viewer.id, target.id)
        raise ForbiddenError("Access denied to this user.")


def ensure_can_access_department(viewer: User, department) -> None:
    if not build_access_filter(viewer.id, viewer.role).covers_department(department):
        logger.warning(
            "Access denied: user %d requested department %d", viewer.id, department.id
        )
        raise ForbiddenError("Access denied to this department.")


def ensure_can_access_office(viewer: User, office) -> None:
    if not build_access_filter(viewer.id, viewer.role).covers_office(office):
        logger.warning("Access denied: user %d requested office %d", viewer.id, office.id)
        raise ForbiddenError("Access denied to this office.")
