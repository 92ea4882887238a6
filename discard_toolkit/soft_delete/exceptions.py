"""Exceptions for discard operations."""

from typing import Any, List, Optional


class DiscardError(Exception):
    """Base exception for discard operations."""


class RecordNotDiscarded(DiscardError):
    """Raised by discard_or_raise() when the record was not discarded."""

    def __init__(self, message: Optional[str] = None, record: Any = None):
        self.record = record
        super().__init__(message)


class RecordNotUndiscarded(DiscardError):
    """Raised by undiscard_or_raise() when the record was not undiscarded."""

    def __init__(self, message: Optional[str] = None, record: Any = None):
        self.record = record
        super().__init__(message)


class PersistenceError(Exception):
    """Base exception for failures of the persistence layer."""

    def __init__(self, message: str, record: Any = None):
        self.record = record
        super().__init__(message)


class RecordInvalid(PersistenceError):
    """Raised when a record fails validation before it is written."""

    def __init__(self, record: Any, errors: List[str]):
        self.errors = list(errors)
        super().__init__(
            f"Validation failed for {record.__class__.__name__}: "
            f"{'; '.join(self.errors)}",
            record=record,
        )


class SessionNotFound(PersistenceError):
    """Raised when a record is not attached to any session."""

    def __init__(self, record: Any):
        super().__init__(
            f"{record.__class__.__name__} is not attached to a session; "
            "add it to a session before discarding or undiscarding it",
            record=record,
        )
