"""
Error taxonomy for entity tracking.

Core code raises these; only the HTTP layer turns them into responses.
"""

from typing import Optional


class TrackingError(Exception):
    """Base class for all tracking failures."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(TrackingError):
    """Malformed input. Raised before any store mutation."""


class NotFoundError(TrackingError):
    """The referenced CID or callsign does not exist."""


class ConflictError(TrackingError):
    """The callsign is held by a different, currently online entity."""


class StorageError(TrackingError):
    """The underlying store failed or returned malformed data."""


class IndexInconsistencyError(TrackingError):
    """
    A callsign index entry does not resolve to a matching online record.

    Recoverable: lookups treat it as "not found" since index and record
    writes are not atomic on every backend.
    """
