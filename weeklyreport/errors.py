"""
Service-layer exception taxonomy.

Services raise these at the point of detection; blueprints never catch
them.  The handler registered in ``create_app`` renders each one as
``{"error": <code>, "message": <text>}`` with the matching HTTP status
and rolls back the session so no partial write survives.
"""


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    error_code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code

    def to_dict(self) -> dict:
        return {"error": self.error_code, "message": self.message}


class ValidationError(ServiceError):
    """Input failed a business validation rule."""

    status_code = 400
    error_code = "VALIDATION_ERROR"


class AuthenticationError(ServiceError):
    """Credentials or bearer token are missing or invalid."""

    status_code = 401
    error_code = "UNAUTHORIZED"


class ForbiddenError(ServiceError):
    """The viewer lacks permission for the requested scope."""

    status_code = 403
    error_code = "FORBIDDEN"


class NotFoundError(ServiceError):
    """A referenced record does not exist."""

    status_code = 404
    error_code = "NOT_FOUND"


class ConflictError(ServiceError):
    """A uniqueness rule or a referential block was violated."""

    status_code = 409
    error_code = "CONFLICT"


class InvalidStateError(ServiceError):
    """Mutation attempted on a locked report."""

    status_code = 423
    error_code = "REPORT_LOCKED"
