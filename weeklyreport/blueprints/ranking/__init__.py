"""
Ranking blueprint — completion rankings over a period of weeks.
"""

from flask import Blueprint

bp = Blueprint("ranking", __name__)

# Import routes after blueprint creation to avoid circular imports.
from weeklyreport.blueprints.ranking import routes  # noqa: E402, F401
