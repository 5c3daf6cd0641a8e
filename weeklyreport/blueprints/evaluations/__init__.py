"""
Evaluations blueprint — manager verdicts on subordinates' tasks.
"""

from flask import Blueprint

bp = Blueprint("evaluations", __name__)

# Import routes after blueprint creation to avoid circular imports.
from weeklyreport.blueprints.evaluations import routes  # noqa: E402, F401
