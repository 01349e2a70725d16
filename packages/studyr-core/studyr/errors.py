"""
Error types for Studyr.

Repository operations raise these to the caller; the host maps them
to user-visible messages.
"""


class StudyrError(Exception):
    """Base class for all Studyr errors."""


class ValidationError(StudyrError, ValueError):
    """Input rejected before anything was written (e.g. empty title)."""


class NotFoundError(StudyrError, LookupError):
    """No record exists with the requested identifier."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: {record_id}")


class StorageError(StudyrError):
    """The underlying key-value store failed."""

    def __init__(self, message: str, key: str | None = None):
        self.key = key
        super().__init__(message)


class StorageReadError(StorageError):
    """The store could not be read, or held a corrupt record."""


class StorageWriteError(StorageError):
    """The store rejected a write."""


class TimerError(StudyrError):
    """Timer operation not allowed in the current timer state."""
