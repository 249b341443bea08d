"""Error taxonomy shared by the HTTP routes and the realtime gateway."""

from typing import Any, Dict, Optional


class MessagingError(Exception):
    """Base class for errors that map onto the `{success: false}` envelope."""

    status_code = 500

    def __init__(self, message: str, error: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error

    def to_envelope(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.error is not None:
            body["error"] = self.error
        return body


class ValidationError(MessagingError):
    """Input failed shape or length checks."""

    status_code = 400


class NotFoundError(MessagingError):
    """Entity is absent or not owned by the requester."""

    status_code = 404


class AuthError(MessagingError):
    """Missing, malformed or expired token."""

    status_code = 401


class StoreError(MessagingError):
    """The persistence layer failed; the raw error text is surfaced to the caller."""

    status_code = 500
