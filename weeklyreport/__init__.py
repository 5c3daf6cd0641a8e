"""
Application factory for the Weekly Work Report service.

Usage::

    from weeklyreport import create_app
    app = create_app()           # Uses FLASK_ENV to pick config.
    app = create_app("testing")  # Explicit config for tests.
"""

import logging
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import config_by_name
from .errors import ServiceError
from .extensions import db, login_manager, migrate

logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: One of 'development', 'testing', or 'production'.
                     Defaults to the FLASK_ENV environment variable,
                     falling back to 'development'.

    Returns:
        A fully configured Flask application instance.
    """
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")
    config_class = config_by_name.get(config_name)
    if config_class is None:
        raise ValueError(
            f"Unknown config '{config_name}'. "
            f"Valid options: {list(config_by_name.keys())}"
        )

    app = Flask(__name__)
    app.config.from_object(config_class)

    # Refuse to run production with default signing keys.
    if config_name == "production":
        config_class.validate_production_secrets(app.config)

    # -- Initialize extensions ---------------------------------------------
    _register_extensions(app)

    # -- Register blueprints -----------------------------------------------
    _register_blueprints(app)

    # -- Register error handlers -------------------------------------------
    _register_error_handlers(app)

    # -- Register custom CLI commands --------------------------------------
    _register_cli_commands(app)

    # -- Configure logging -------------------------------------------------
    _configure_logging(app)

    return app


def _register_extensions(app: Flask) -> None:
    """Bind all Flask extensions to the application instance."""
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Imported here to avoid circular imports with models.
    from .services.auth_service import (  # pylint: disable=import-outside-toplevel
        load_user_from_token,
    )

    @login_manager.request_loader
    def load_user_from_request(request):
        """Resolve ``Authorization: Bearer <token>`` to a user."""
        header = request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        return load_user_from_token(token.strip())

    @login_manager.unauthorized_handler
    def unauthorized():
        return (
            jsonify(error="UNAUTHORIZED", message="Authentication required."),
            401,
        )


def _register_blueprints(app: Flask) -> None:
    """
    Import and register each blueprint with its URL prefix.

    Blueprints are imported inside this function to avoid circular
    imports — models and services can safely import ``db`` from
    extensions at module level.
    """
    # pylint: disable=import-outside-toplevel

    # Main blueprint: health check.
    from .blueprints.main import bp as main_bp

    app.register_blueprint(main_bp)

    # Authentication: login, profile, password.
    from .blueprints.auth import bp as auth_bp

    app.register_blueprint(auth_bp, url_prefix="/auth")

    # Organization: offices, departments, positions, job positions.
    from .blueprints.organization import bp as org_bp

    app.register_blueprint(org_bp, url_prefix="/org")

    # Reports: weekly reports, tasks, locking.
    from .blueprints.reports import bp as reports_bp

    app.register_blueprint(reports_bp, url_prefix="/reports")

    # Evaluations: manager verdicts on subordinates' tasks.
    from .blueprints.evaluations import bp as evaluations_bp

    app.register_blueprint(evaluations_bp, url_prefix="/task-evaluations")

    # Hierarchy: drill-down views, trends and reasons.
    from .blueprints.hierarchy import bp as hierarchy_bp

    app.register_blueprint(hierarchy_bp, url_prefix="/hierarchy-reports")

    # Ranking and statistics.
    from .blueprints.ranking import bp as ranking_bp

    app.register_blueprint(ranking_bp, url_prefix="/ranking")

    from .blueprints.statistics import bp as statistics_bp

    app.register_blueprint(statistics_bp, url_prefix="/statistics")

    # Admin: user management.
    from .blueprints.admin import bp as admin_bp

    app.register_blueprint(admin_bp, url_prefix="/admin")


def _register_error_handlers(app: Flask) -> None:
    """Render service errors and HTTP errors as JSON bodies."""

    @app.errorhandler(ServiceError)
    def service_error(error: ServiceError):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        code = (error.name or "error").upper().replace(" ", "_")
        return jsonify(error=code, message=error.description), error.code

    @app.errorhandler(500)
    def internal_error(error):  # pylint: disable=unused-argument
        """Handle 500 Internal Server Error."""
        db.session.rollback()
        logger.exception("Unhandled error")
        return (
            jsonify(error="INTERNAL_SERVER_ERROR", message="Internal server error."),
            500,
        )


def _register_cli_commands(app: Flask) -> None:
    """Register custom Flask CLI commands (e.g., flask lock-reports)."""
    from .cli import register_commands  # pylint: disable=import-outside-toplevel
    from .seed_dev_admin import (  # pylint: disable=import-outside-toplevel
        register_seed_commands,
    )

    register_commands(app)
    register_seed_commands(app)


def _configure_logging(app: Flask) -> None:
    """Configure root logging from ``LOG_LEVEL``."""
    log_level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO))

    # Quiet down noisy libraries in development.
    if app.debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
