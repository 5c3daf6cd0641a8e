"""
Reports blueprint — weekly reports, tasks and locking.
"""

from flask import Blueprint

bp = Blueprint("reports", __name__)

# Import routes after blueprint creation to avoid circular imports.
from weeklyreport.blueprints.reports import routes  # noqa: E402, F401
