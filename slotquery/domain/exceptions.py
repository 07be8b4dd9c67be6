"""
Domain-specific exception hierarchy for slotquery.
"""


class SlotQueryError(Exception):
    """Base class for all application-level errors."""


class EngineError(SlotQueryError):
    """Raised by the query engine when a query violates a precondition."""


class InvalidDateRange(EngineError):
    """Raised when the date range starts after it ends."""


class DateRangeTooLarge(InvalidDateRange):
    """Raised when the date range spans more days than the engine allows."""


class InvalidCount(EngineError):
    """Raised when the result cap is not a positive integer."""


class UnsupportedIntent(EngineError):
    """Raised when the query intent is not one the engine knows."""


class InvalidQuery(EngineError):
    """Raised when a time preference or slot duration is not recognized."""


class SnapshotUnavailable(SlotQueryError):
    """Raised when no calendar data can be loaded for a query."""


class StorageError(SlotQueryError):
    """Raised when stored calendar data cannot be read or written."""


class QueryValidationError(SlotQueryError):
    """Raised when a wire-level query fails schema validation."""
