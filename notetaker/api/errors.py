"""Error taxonomy of the notes API.

Every error carries the HTTP status it maps to; ``main`` registers a single
handler that renders them as ``{"error": message}``.
"""
from typing import Dict, List, Optional


class NotesError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationFailed(NotesError):
    """Malformed or missing input, with field-level detail."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, details: Optional[List[Dict[str, str]]] = None, message: Optional[str] = None):
        super().__init__(message)
        self.details = details or []

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


class Unauthorized(NotesError):
    """Missing, malformed, badly signed or expired bearer token."""

    status_code = 401
    default_message = "Unauthorized"


class InvalidCredentials(Unauthorized):
    # Same message for unknown email and wrong password.
    status_code = 400
    default_message = "Invalid credentials"


class NotFound(NotesError):
    status_code = 404
    default_message = "Not found"


class NoteAccessDenied(NotFound):
    """The note does not exist or belongs to someone else.

    Both cases are reported identically so callers cannot probe other tenants.
    """

    default_message = "Note not found"


class Conflict(NotesError):
    status_code = 400
    default_message = "User already exists"


class InvalidOrExpiredCode(NotesError):
    """No matching, unexpired password-reset code is on file."""

    status_code = 400
    default_message = "Invalid or expired reset code"


class UpstreamFailure(NotesError):
    """The OAuth provider or the mail transport failed."""

    status_code = 500
    default_message = "Upstream service failure"
