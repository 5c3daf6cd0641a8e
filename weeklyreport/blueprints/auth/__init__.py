"""
Auth blueprint — password login and bearer tokens.
"""

from flask import Blueprint

bp = Blueprint("auth", __name__)

# Import routes after blueprint creation to avoid circular imports.
from weeklyreport.blueprints.auth import routes  # noqa: E402, F401
