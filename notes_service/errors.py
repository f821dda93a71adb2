"""Error taxonomy for the notes service.

Components raise these; the app translates them into an HTTP status and a
``{"error": <code>, "detail": <message>}`` body at the request boundary.
"""

from typing import Any, Dict, Optional


class NotesServiceError(Exception):
    """Base class for all errors that map onto a client-facing response."""

    status_code = 400
    default_message = "Bad request."

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.code, "detail": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(NotesServiceError):
    status_code = 400
    default_message = "Invalid input."


class DuplicateUsername(NotesServiceError):
    status_code = 400
    default_message = "Username must be unique."


class AuthenticationError(NotesServiceError):
    """Raised when the caller could not be authenticated (401)."""

    status_code = 401
    default_message = "Authentication required."


class InvalidCredentials(AuthenticationError):
    default_message = "Invalid username or password."


class TokenMissing(AuthenticationError):
    default_message = "Token missing."


class TokenInvalid(AuthenticationError):
    default_message = "Token invalid."


class TokenExpired(AuthenticationError):
    default_message = "Token expired."


class Forbidden(NotesServiceError):
    status_code = 403
    default_message = "Only the owner may modify this note."


class NotFound(NotesServiceError):
    status_code = 404
    default_message = "Not found."
