"""
Application configuration classes.

Each class represents a deployment environment. The factory function
``create_app`` in ``weeklyreport/__init__.py`` selects the appropriate
config based on the FLASK_ENV environment variable.

List-valued settings (title keyword lists, excluded titles) are read
from comma-separated environment variables so operators can extend the
locale-specific heuristics without a code change.
"""

import logging
import os

# Module-level logger for startup warnings emitted by config classes.
_logger = logging.getLogger(__name__)

# =========================================================================
# Sentinels for detecting unset secrets in production.
# =========================================================================
_DEFAULT_SECRET_KEY = "dev-secret-change-me"
_DEFAULT_JWT_SECRET_KEY = "dev-jwt-secret-change-me"


def _env_list(name: str, default: str) -> list[str]:
    """Split a comma-separated environment variable into a clean list."""
    return [
        item.strip()
        for item in os.environ.get(name, default).split(",")
        if item.strip()
    ]


class BaseConfig:
    """
    Shared configuration values inherited by all environments.

    Secrets and connection strings are loaded from environment variables
    so they never appear in source control.
    """

    # -- Flask core --------------------------------------------------------
    SECRET_KEY: str = os.environ.get("SECRET_KEY", _DEFAULT_SECRET_KEY)
    JSON_SORT_KEYS: bool = False

    # -- SQLAlchemy --------------------------------------------------------
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL", "sqlite:///weeklyreport-dev.db"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    # Echo SQL statements to the log for debugging (override per env).
    SQLALCHEMY_ECHO: bool = False

    # -- JWT bearer tokens -------------------------------------------------
    JWT_SECRET_KEY: str = os.environ.get("JWT_SECRET_KEY", _DEFAULT_JWT_SECRET_KEY)
    JWT_ALGORITHM: str = os.environ.get("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_MINUTES: int = int(os.environ.get("JWT_EXPIRES_MINUTES", "480"))

    # -- Organization hierarchy rules --------------------------------------
    # Lowest working tier; managers at or below it have no subordinates.
    LOWEST_WORKING_LEVEL: int = int(os.environ.get("LOWEST_WORKING_LEVEL", "7"))

    # Managers at these levels only see staff in their own department.
    DEPARTMENT_SCOPED_LEVELS: list[int] = [
        int(level) for level in _env_list("DEPARTMENT_SCOPED_LEVELS", "3,4,5,6")
    ]

    # Level at which assistant titles are denied subordinate visibility.
    ASSISTANT_LEVEL: int = int(os.environ.get("ASSISTANT_LEVEL", "5"))

    # Case-insensitive substrings marking an assistant title.
    ASSISTANT_TITLE_KEYWORDS: list[str] = _env_list(
        "ASSISTANT_TITLE_KEYWORDS", "trợ lý,assistant,tro ly"
    )

    # Case-insensitive substrings marking a management title.
    MANAGEMENT_TITLE_KEYWORDS: list[str] = _env_list(
        "MANAGEMENT_TITLE_KEYWORDS",
        "giám đốc,trưởng,phó,manager,leader,supervisor",
    )

    # Top titles never counted as staff even when not flagged management.
    EXCLUDED_STAFF_TITLES: list[str] = _env_list(
        "EXCLUDED_STAFF_TITLES", "Tổng giám đốc,Chủ tịch,CEO"
    )

    # Strategy used to expand a manager's SubordinateSet scope.
    SUBORDINATE_STRATEGY: str = os.environ.get("SUBORDINATE_STRATEGY", "tree_walk")

    # -- Reporting ---------------------------------------------------------
    # Work weeks are computed from "today" in this zone, not server time.
    REPORT_TIMEZONE: str = os.environ.get("REPORT_TIMEZONE", "Asia/Ho_Chi_Minh")
    DEFAULT_RANKING_PERIOD_WEEKS: int = int(
        os.environ.get("DEFAULT_RANKING_PERIOD_WEEKS", "4")
    )
    DEFAULT_PAGE_SIZE: int = int(os.environ.get("DEFAULT_PAGE_SIZE", "20"))

    # -- Logging -----------------------------------------------------------
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    # =====================================================================
    # Production validation helpers
    # =====================================================================

    @classmethod
    def validate_production_secrets(cls, app_config: dict) -> None:
        """
        Verify that all required secrets are set for production.

        Called by ``create_app()`` when ``config_name == 'production'``.
        Raises ``RuntimeError`` for hard requirements and logs warnings
        for soft requirements.

        Args:
            app_config: The ``app.config`` dict after loading the
                        config class.

        Raises:
            RuntimeError: If any critical secret is missing or still
                          set to its insecure default value.
        """
        errors: list[str] = []

        # -- SECRET_KEY (hard fail) ----------------------------------------
        if app_config.get("SECRET_KEY") == _DEFAULT_SECRET_KEY:
            errors.append(
                "SECRET_KEY is still the insecure default. "
                "Generate one with: python -c "
                '"import secrets; print(secrets.token_hex(32))"'
            )

        # -- JWT_SECRET_KEY (hard fail) ------------------------------------
        # Anyone holding the default key could mint admin tokens.
        if app_config.get("JWT_SECRET_KEY") == _DEFAULT_JWT_SECRET_KEY:
            errors.append("JWT_SECRET_KEY is still the insecure default.")

        if errors:
            combined = "\n  - ".join(errors)
            raise RuntimeError(f"Production configuration errors:\n  - {combined}")

        # -- LOG_LEVEL sanity check (soft warning) -------------------------
        if app_config.get("LOG_LEVEL", "").upper() == "DEBUG":
            _logger.warning(
                "LOG_LEVEL=DEBUG is not recommended in production; "
                "SQL statements and request data may appear in logs."
            )


class DevelopmentConfig(BaseConfig):
    """Development environment: verbose logging, SQL echo enabled."""

    DEBUG: bool = True
    SQLALCHEMY_ECHO: bool = True
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(BaseConfig):
    """
    Testing environment: in-memory SQLite unless TEST_DATABASE_URL is set.

    The hierarchy rules keep their defaults so tests exercise the same
    keyword lists and level boundaries as production.
    """

    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    JWT_EXPIRES_MINUTES: int = 5
    LOG_LEVEL: str = "DEBUG"


class ProductionConfig(BaseConfig):
    """
    Production environment: strict settings, no debug output.

    All secrets must be set via environment variables. The application
    factory calls ``validate_production_secrets()`` at startup and will
    refuse to launch if critical values are missing.
    """

    DEBUG: bool = False
    SQLALCHEMY_ECHO: bool = False
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "WARNING")


# Lookup dict used by the application factory.
config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}
