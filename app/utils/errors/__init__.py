"""Failure kinds surfaced to clients.

Every error carries an HTTP status and a machine-readable ``kind``; the
handlers registered in ``main.py`` render them as ``{"kind", "message"}``.
"""


class AppError(Exception):
    status_code: int = 500
    kind: str = "Error"
    default_message: str = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class Unauthenticated(AppError):
    status_code = 401
    kind = "Unauthenticated"
    default_message = "Access denied"


class InvalidCredential(AppError):
    status_code = 401
    kind = "InvalidCredential"
    default_message = "Invalid token"


class Forbidden(AppError):
    status_code = 403
    kind = "Forbidden"
    default_message = "Forbidden access"


class NotFound(AppError):
    status_code = 404
    kind = "NotFound"
    default_message = "Not found"


class InvalidInput(AppError):
    status_code = 400
    kind = "InvalidInput"
    default_message = "Invalid input"


class InvalidStatus(InvalidInput):
    kind = "InvalidStatus"
    default_message = "Status must be one of: accepted, rejected"


class AlreadyVoted(AppError):
    status_code = 409
    kind = "AlreadyVoted"
    default_message = "You have already voted for this product"


class NotVoted(AppError):
    status_code = 409
    kind = "NotVoted"
    default_message = "You have not voted for this product"


class StorageError(AppError):
    status_code = 503
    kind = "StorageError"
    default_message = "Storage unavailable"


class UpstreamError(AppError):
    status_code = 502
    kind = "UpstreamError"
    default_message = "Payment provider error"


class RateLimited(AppError):
    status_code = 429
    kind = "RateLimited"
    default_message = "Too many requests"
