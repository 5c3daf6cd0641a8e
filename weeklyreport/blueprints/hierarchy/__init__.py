"""
Hierarchy blueprint — drill-down statistics, trends and reasons.
"""

from flask import Blueprint

bp = Blueprint("hierarchy", __name__)

# Import routes after blueprint creation to avoid circular imports.
from weeklyreport.blueprints.hierarchy import routes  # noqa: E402, F401
