"""
Statistics blueprint — organisation-wide submission figures.
"""

from flask import Blueprint

bp = Blueprint("statistics", __name__)

# Import routes after blueprint creation to avoid circular imports.
from weeklyreport.blueprints.statistics import routes  # noqa: E402, F401
