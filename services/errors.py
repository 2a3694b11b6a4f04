"""Domain errors raised by the auth and user services.

Each error carries the HTTP status it is rendered with; the application
error handler turns them into the standard JSON error payload.
"""

from __future__ import annotations

from http import HTTPStatus


class AuthSystemError(Exception):
    """Base class for expected failures of the auth and user services."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateEmailError(AuthSystemError):
    status_code = HTTPStatus.CONFLICT
    default_message = "That email is already in use."


class InvalidCredentialsError(AuthSystemError):
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "Invalid credentials."


class EmailNotVerifiedError(AuthSystemError):
    status_code = HTTPStatus.UNAUTHORIZED
    default_message = "You must verify your email before signing in."


class InvalidTokenError(AuthSystemError):
    status_code = HTTPStatus.BAD_REQUEST
    default_message = "Invalid or expired token."


class UserNotFoundError(AuthSystemError):
    status_code = HTTPStatus.NOT_FOUND
    default_message = "User not found."


class ForbiddenError(AuthSystemError):
    status_code = HTTPStatus.FORBIDDEN
    default_message = "Only ADMIN users can delete accounts."


class NotificationError(AuthSystemError):
    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    default_message = "The verification email could not be sent. Please try again later."


class CredentialHashError(AuthSystemError):
    """A stored password hash could not be parsed."""

    default_message = "Stored credential is corrupt."
