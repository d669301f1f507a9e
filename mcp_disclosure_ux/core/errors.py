"""
Errors - Failure kinds raised by the core and its adapters

Every error carries a stable code so delivery layers can report the kind
of failure without parsing messages.
"""
from typing import Any, Optional


class DisclosureError(Exception):
    """Base class for all disclosure errors"""

    code: str = "DISCLOSURE_ERROR"

    def __init__(self, message: str = "", *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class StorageFailure(DisclosureError):
    """Persistence is unavailable or its contents are unreadable"""

    code = "STORAGE_FAILURE"


class InvalidPeriod(DisclosureError):
    """Malformed or unrecognized period label"""

    code = "INVALID_PERIOD"


class NotFound(DisclosureError):
    """A specific record targeted by an update or delete does not exist"""

    code = "NOT_FOUND"


class PermissionViolation(DisclosureError):
    """Write touching data the caller does not own"""

    code = "PERMISSION_VIOLATION"


class RenderFailure(DisclosureError):
    """Report workbook could not be assembled"""

    code = "RENDER_FAILURE"
