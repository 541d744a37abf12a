"""
Application errors.

AppError subclasses carry a safe-to-display message and an HTTP status; the
error handlers in api.errors turn them into the uniform error envelope.
TokenError and its subclasses never reach a client: callers translate them
into UnauthorizedError.
"""
from __future__ import annotations


class AppError(Exception):
    status = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status


class ConflictError(AppError):
    status = 409
    code = "CONFLICT"


class UnauthorizedError(AppError):
    status = 401
    code = "UNAUTHORIZED"


class ForbiddenError(AppError):
    status = 403
    code = "FORBIDDEN"


class NotFoundError(AppError):
    status = 404
    code = "NOT_FOUND"


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenInvalid(TokenError):
    """Bad signature, malformed token, missing claims or wrong token type."""


class TokenExpired(TokenError):
    """The token's exp claim is in the past."""
