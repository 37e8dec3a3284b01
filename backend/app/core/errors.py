# app/core/errors.py
"""
Application error taxonomy.

Services and dependencies raise these; the exception handler registered in
app.main renders them with the standard ``{"error": ..., "message": ...}`` shape.
Anything that is not an AppError is treated as an internal failure.
"""
from __future__ import annotations


class AppError(Exception):
    """Base class for errors that map to a specific HTTP response."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "An internal error occurred."

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class DuplicateIdentityError(AppError):
    """Raised when a username or email is already registered."""

    status_code = 400
    code = "DUPLICATE_IDENTITY"
    default_message = "Username or email already exists."


class InvalidCredentialsError(AppError):
    """Raised when a username/password pair does not match a user."""

    status_code = 400
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid username or password"


class MissingCredentialError(AppError):
    """Raised when a protected route is called without a bearer token."""

    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Access Denied"


class InvalidCredentialError(AppError):
    """Raised when the bearer token is malformed, tampered with or expired."""

    status_code = 400
    code = "INVALID_TOKEN"
    default_message = "Invalid Token"


class InvalidAssertionError(AppError):
    """Raised when a federated identity assertion is rejected."""

    status_code = 500
    code = "INVALID_ASSERTION"
    default_message = "An error occurred during Google sign-in."


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class UnauthorizedError(AppError):
    """Raised when the acting identity does not own the resource."""

    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Unauthorized"


class InternalError(AppError):
    status_code = 500
    code = "INTERNAL_ERROR"
    default_message = "An internal error occurred."
