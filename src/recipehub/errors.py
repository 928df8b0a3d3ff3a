"""Application error taxonomy.

Every error a service raises for a client mistake derives from
:class:`AppError` and carries the HTTP status it maps to. The FastAPI
exception handlers in ``recipehub.main`` turn them into the standard
response envelope.
"""


class AppError(Exception):
    """Base class for expected, client-facing errors."""

    status_code: int = 500
    default_message: str = "Server Error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed input: bad date range, unknown meal type, duplicate value."""

    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(AppError):
    """Missing or invalid credentials."""

    status_code = 401
    default_message = "Not authorized"


class ForbiddenError(AppError):
    """Authenticated caller does not own the resource."""

    status_code = 403
    default_message = "Not authorized"


class NotFoundError(AppError):
    """Referenced entity does not exist."""

    status_code = 404
    default_message = "Not found"

    @classmethod
    def for_entity(cls, entity: str) -> "NotFoundError":
        return cls(f"{entity} not found")
