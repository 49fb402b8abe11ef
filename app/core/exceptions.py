"""Error taxonomy shared by services and routes.

Each error carries the HTTP status it maps to; the handler in ``app.main``
renders them as ``{"detail": ...}`` responses.
"""
from typing import Any


class AppError(Exception):
    status_code = 500
    default_detail = "Something went wrong"

    def __init__(self, detail: str | None = None, **extra: Any) -> None:
        self.detail = detail or self.default_detail
        self.extra = extra
        super().__init__(self.detail)


class ValidationError(AppError):
    """Bad or missing input fields."""

    status_code = 400
    default_detail = "Invalid input"

    def __init__(self, detail: str | None = None, errors: list[dict] | None = None) -> None:
        self.errors = errors or []
        if detail is None and self.errors:
            detail = self.errors[0]["message"]
        super().__init__(detail)


class AuthError(AppError):
    status_code = 401
    default_detail = "Unauthorized"


class NotFoundError(AppError):
    status_code = 404
    default_detail = "Appointment not found"


class ConflictError(AppError):
    status_code = 409
    default_detail = "This time slot is already booked. Please select a different date or time."


class RateLimitError(AppError):
    status_code = 429
    default_detail = "Too many requests. Please try again later."


class TransientIOError(AppError):
    """Store or transport failure; logged, never retried, details not exposed."""

    status_code = 500
