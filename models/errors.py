from typing import Optional


class LedgerError(Exception):
    """Base class for record-keeping failures."""


class ValidationError(LedgerError, ValueError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class InvertedDateRange(ValidationError):
    def __init__(self, start: str, end: str):
        super().__init__(f"Start date {start} is after end date {end}", field="start")
        self.start = start
        self.end = end


class StorageError(LedgerError):
    """A mutation could not be persisted. The caller may retry."""
