"""
Admin blueprint — user management.
"""

from flask import Blueprint

bp = Blueprint("admin", __name__)

# Import routes after blueprint creation to avoid circular imports.
from weeklyreport.blueprints.admin import routes  # noqa: E402, F401
