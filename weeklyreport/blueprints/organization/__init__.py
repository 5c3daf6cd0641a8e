"""
Organization blueprint — offices, departments, positions, job positions.
"""

from flask import Blueprint

bp = Blueprint("organization", __name__)

# Import routes after blueprint creation to avoid circular imports.
from weeklyreport.blueprints.organization import routes  # noqa: E402, F401
