"""
Auth error taxonomy.

Every error carries the HTTP status it maps to and a message that is safe to
return to the client. The application's exception handlers turn these into
``{"success": false, "message": ...}`` bodies.
"""

from fastapi import status


class AuthError(Exception):
    """Base exception for the auth boundary."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_response(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationFailed(AuthError):
    """Missing or malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "All fields are required"


class ConflictError(AuthError):
    """Email or username already taken."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exists"


class BotCheckFailed(AuthError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid reCAPTCHA"


class TokenInvalid(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid ID token"


class TokenExpired(AuthError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "ID token expired"


class Unauthorized(AuthError):
    """Missing or invalid session."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "User not authenticated"


class NotFound(AuthError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class UnexpectedError(AuthError):
    """Any other failure of an external collaborator.

    The original exception is kept as ``cause`` for logging; the client only
    sees the generic message.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str | None = None, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
