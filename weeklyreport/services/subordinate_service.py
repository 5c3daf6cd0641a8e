"""
Subordinate resolver — which users sit below a manager.

Two strategies are registered in ``SUBORDINATE_STRATEGIES``:

  - **level_range**: every user whose level lies in ``(L, LOWEST_WORKING_LEVEL]``
    in the manager's office, restricted to the manager's department for
    levels listed in ``DEPARTMENT_SCOPED_LEVELS``.  Used by the manager
    reports view.
  - **tree_walk**: start from the direct reports (same department, next
    level) and expand every management-flagged user to the deeper users of
    the office.  Used to expand a ``SubordinateSet`` access scope.

Every strategy returns active users in reportable positions, sorted by
position level, department name, last name and first name.
"""

import logging
from collections import deque

from flask import current_app

from weeklyreport.errors import NotFoundError
from weeklyreport.extensions import db
from weeklyreport.models.organization import Department, JobPosition, Position
from weeklyreport.models.user import UNKNOWN_LEVEL, User

logger = logging.getLogger(__name__)


def _base_query():
    """Active users in reportable positions, joined for ordering."""
    return (
        User.query.join(JobPosition, User.job_position_id == JobPosition.id)
        .join(Position, JobPosition.position_id == Position.id)
        .join(Department, JobPosition.department_id == Department.id)
        .filter(User.is_active == True)  # noqa: E712
        .filter(Position.is_reportable == True)  # noqa: E712
    )


def _ordered(query):
    return query.order_by(
        Position.level, Department.name, User.last_name, User.first_name
    )


def sort_key(user: User):
    department = user.department
    return (
        user.position_level,
        department.name if department else "",
        user.last_name,
        user.first_name,
    )


# -- Level-range strategy --------------------------------------------------


def is_assistant_title(name: str, keywords=None) -> bool:
    """Case-insensitive substring match against the assistant keywords."""
    if keywords is None:
        keywords = current_app.config["ASSISTANT_TITLE_KEYWORDS"]
    lowered = (name or "").lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def visible_levels(manager: User) -> list[int]:
    """
    Return the position levels a non-admin manager may see.

    Empty when the manager is at or below the lowest working level, when
    their level is unknown, or when they hold an assistant title at the
    assistant level.
    """
    lowest = current_app.config["LOWEST_WORKING_LEVEL"]
    level = manager.position_level
    if level == UNKNOWN_LEVEL or level >= lowest:
        return []
    if level == current_app.config["ASSISTANT_LEVEL"] and is_assistant_title(
        manager.position_name
    ):
        return []
    return list(range(int(level) + 1, lowest + 1))


def resolve_by_level_range(manager: User) -> list[User]:
    """
    Resolve subordinates by level band.

    ADMIN and SUPERADMIN see every active user except themselves.
    """
    query = _base_query().filter(User.id != manager.id)
    if manager.is_admin:
        return _ordered(query).all()

    levels = visible_levels(manager)
    if not levels:
        return []

    query = query.filter(
        Position.level.in_(levels), User.office_id == manager.office_id
    )
    if manager.position_level in current_app.config["DEPARTMENT_SCOPED_LEVELS"]:
        query = query.filter(JobPosition.department_id == manager.department_id)
    return _ordered(query).all()


# -- Tree-walk strategy ----------------------------------------------------


def _direct_reports(parent: User, candidates: list[User]) -> list[User]:
    """Same-department users exactly one level below ``parent``."""
    level = parent.position_level
    if level == UNKNOWN_LEVEL:
        return []
    return [
        user
        for user in candidates
        if user.department_id == parent.department_id
        and user.position_level == level + 1
    ]


def _expand(parent: User, candidates: list[User]) -> list[User]:
    """
    Users reached from a management-flagged ``parent``.

    Same-department users one level down are included by the level test;
    deeper users of any department in the office are reached as well.
    """
    level = parent.position_level
    if level == UNKNOWN_LEVEL:
        return []
    return [
        user
        for user in candidates
        if user.position_level != UNKNOWN_LEVEL and user.position_level > level
    ]


def resolve_by_tree_walk(manager: User) -> list[User]:
    """
    Resolve subordinates by walking the tree from the manager down.

    The walk starts from the manager's direct reports (same department,
    next level).  Management-flagged users found along the way are
    expanded further.  A visited set keeps each user once; levels strictly
    increase along every edge so the walk terminates.
    """
    if manager.is_admin:
        return resolve_by_level_range(manager)

    candidates = (
        _base_query()
        .filter(User.office_id == manager.office_id, User.id != manager.id)
        .all()
    )

    visited: dict[int, User] = {}
    queue = deque()
    for report in _direct_reports(manager, candidates):
        visited[report.id] = report
        if report.is_management:
            queue.append(report)

    while queue:
        parent = queue.popleft()
        for child in _expand(parent, candidates):
            if child.id in visited:
                continue
            visited[child.id] = child
            if child.is_management:
                queue.append(child)

    return sorted(visited.values(), key=sort_key)


SUBORDINATE_STRATEGIES = {
    "level_range": resolve_by_level_range,
    "tree_walk": resolve_by_tree_walk,
}


def resolve_subordinates(manager_id: int, strategy: str | None = None) -> list[User]:
    """
    Resolve a manager's subordinates with the named (or configured) strategy.

    Raises:
        NotFoundError: If the manager does not exist.
        ValueError:    If the strategy name is not registered.
    """
    manager = db.session.get(User, manager_id)
    if manager is None:
        raise NotFoundError(f"User ID {manager_id} not found.")

    name = strategy or current_app.config["SUBORDINATE_STRATEGY"]
    resolver = SUBORDINATE_STRATEGIES.get(name)
    if resolver is None:
        raise ValueError(
            f"Unknown subordinate strategy '{name}'. "
            f"Valid options: {list(SUBORDINATE_STRATEGIES.keys())}"
        )
    subordinates = resolver(manager)
    logger.debug(
        "Resolved %d subordinates for user %d via %s",
        len(subordinates),
        manager.id,
        name,
    )
    return subordinates
