"""State management errors."""


class StateError(Exception):
    """Base exception for persisted state operations."""


class UnknownRecordError(StateError):
    """Raised when an operation references a record id that does not exist."""
