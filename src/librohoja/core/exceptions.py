"""
Error taxonomy shared by the record store and the consistency rules.

Every error carries a client-facing message and the HTTP status the web
layer should answer with, so handlers can map them without type switches.
"""

from typing import Any, Dict, Optional


class LibraryError(Exception):
    """Base class for every error raised on purpose by LibroHoja."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def as_payload(self) -> Dict[str, Any]:
        """Shape the error the way the HTTP layer returns it."""
        payload: Dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NotFoundError(LibraryError):
    """Referenced id does not exist in the targeted collection."""
    status_code = 404


class ValidationError(LibraryError):
    """Required field missing or value outside its declared range."""
    status_code = 400


class DuplicateError(LibraryError):
    """A uniqueness rule would be violated."""
    status_code = 409


class CapacityExceededError(LibraryError):
    """No copies of the book are available."""
    status_code = 400


class LimitExceededError(LibraryError):
    """The borrower already holds the maximum number of active loans."""
    status_code = 400


class InvalidStateError(LibraryError):
    """The record exists but is not in a state that allows the operation."""
    status_code = 400


class PermissionDeniedError(LibraryError):
    """The caller's role or credentials do not allow the operation."""
    status_code = 403


class StorageCorruptionError(LibraryError):
    """A backing workbook exists but cannot be parsed."""
    status_code = 500


class StoreLockTimeoutError(LibraryError):
    """A writer could not obtain a collection lock in time."""
    status_code = 503
