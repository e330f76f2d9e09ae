"""Exception taxonomy for the booking engine."""

from typing import Any, Optional


class BookingEngineError(Exception):
    """Base class for all booking engine errors."""


class ValidationError(BookingEngineError, ValueError):
    """Raised when input to the engine is malformed (bad shift, negative duration...)."""


class ConflictError(BookingEngineError):
    """Raised at submission time when the requested slot is no longer free.

    Not fatal: the caller should refresh the slot list and let the user pick again.
    """

    def __init__(self, message: str, conflicts: Optional[list[Any]] = None) -> None:
        super().__init__(message)
        self.conflicts = list(conflicts or [])


class DuplicateSubmissionError(BookingEngineError):
    """Raised when the same logical action is submitted while one is in flight."""


class InvalidTransitionError(BookingEngineError):
    """Raised when a booking status change is not valid from the current status."""


class PolicyViolationError(BookingEngineError):
    """Raised when a business policy (cancellation or booking window) forbids an action."""


class PartialFailure(BookingEngineError):
    """Raised when a batch of recurring writes only partly succeeded."""

    def __init__(self, message: str, result: Any) -> None:
        super().__init__(message)
        self.result = result


class StaleDataWarning(UserWarning):
    """Emitted when a collaborator fetch failed and results degraded to empty."""
