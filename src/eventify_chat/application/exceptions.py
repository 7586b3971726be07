from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ConflictError(AppError):
    pass


class ValidationError(AppError):
    pass


class InvalidIdError(ValidationError):
    """Identifier is not a well-formed id; raised before any store lookup."""


class AuthenticationError(Exception):
    """Connection credential rejected. ``reason`` is sent verbatim to the client."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)
