"""
Authorization decorators for route-level access control.

Used together with Flask-Login's ``@login_required``:

    @bp.route('/users')
    @login_required
    @role_required('ADMIN', 'SUPERADMIN')
    def list_users():
        ...

Finer-grained rules (scopes, subordinate sets, edit windows) live in
the services; these decorators only gate whole endpoints by role.
"""

import logging
from functools import wraps

from flask import abort, request
from flask_login import current_user

logger = logging.getLogger(__name__)


def role_required(*role_names: str):
    """
    Decorator that restricts access to users with one of the specified roles.

    Args:
        role_names: One or more role names (e.g., 'ADMIN', 'SUPERADMIN').
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            # current_user is guaranteed authenticated by @login_required.
            if not current_user.is_authenticated:
                abort(401)
            if current_user.role not in role_names:
                logger.warning(
                    "Access denied: user %d with role '%s' "
                    "attempted %s %s (requires one of: %s)",
                    current_user.id,
                    current_user.role,
                    request.method,
                    request.path,
                    ", ".join(role_names),
                )
                abort(403, description="You do not have permission to access this resource.")
            return func(*args, **kwargs)

        return wrapper

    return decorator


def admin_required(func):
    """Shortcut for ``role_required('ADMIN', 'SUPERADMIN')``."""
    return role_required("ADMIN", "SUPERADMIN")(func)
