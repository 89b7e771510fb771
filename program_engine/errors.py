"""Canonical engine error types.

Every failure the engine surfaces carries a stable error code. Callers branch
on the type (or on ``code``), never on message text.

Standard error codes:
- OUT_OF_RANGE: Day index or week number outside the program bounds
- NOT_FOUND: Unknown program, cohort, enrollment, task or structural node
- INCONSISTENT_ENROLLMENT: Active enrollment without a start timestamp
- CAPACITY_EXCEEDED: Focus list operation would breach its capacity
- STRUCTURAL_INVARIANT_VIOLATION: Reindex would leave gaps or overlaps
- STRUCTURE_CONFLICT: Structural write raced another structural write
"""

from enum import StrEnum


class ErrorCode(StrEnum):
    OUT_OF_RANGE = "OUT_OF_RANGE"
    NOT_FOUND = "NOT_FOUND"
    INCONSISTENT_ENROLLMENT = "INCONSISTENT_ENROLLMENT"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    STRUCTURAL_INVARIANT_VIOLATION = "STRUCTURAL_INVARIANT_VIOLATION"
    STRUCTURE_CONFLICT = "STRUCTURE_CONFLICT"


class ProgramEngineError(RuntimeError):
    """Base class for all engine errors.

    Attributes:
        code: Error code (e.g., "OUT_OF_RANGE", "CAPACITY_EXCEEDED")
        details: List of error detail strings
    """

    code: ErrorCode = ErrorCode.NOT_FOUND

    def __init__(self, details: list[str] | str, code: ErrorCode | None = None):
        if code is not None:
            self.code = code
        self.details = [details] if isinstance(details, str) else list(details)
        super().__init__(f"{self.code}: {self.details}")


class OutOfRangeError(ProgramEngineError):
    """Raised when a day index or week number is outside the program."""

    code = ErrorCode.OUT_OF_RANGE


class NotFoundError(ProgramEngineError):
    """Raised when a referenced record does not exist.

    Never raised for an absent override layer: a missing override means
    "inherit", a missing program/cohort/enrollment is an error.
    """

    code = ErrorCode.NOT_FOUND


class InconsistentEnrollmentError(ProgramEngineError):
    """Active enrollment is missing a required start timestamp.

    The day-index calculator reports this as a warning and degrades to day 0;
    the exception type exists for callers that want to escalate it.
    """

    code = ErrorCode.INCONSISTENT_ENROLLMENT


class CapacityExceededError(ProgramEngineError):
    """Raised when a focus list operation would exceed the focus capacity."""

    code = ErrorCode.CAPACITY_EXCEEDED


class StructuralInvariantViolation(ProgramEngineError):
    """Raised when a reindex would not produce a gapless partition.

    Non-recoverable: the whole reindex is aborted and nothing may be persisted.
    """

    code = ErrorCode.STRUCTURAL_INVARIANT_VIOLATION


class StructureConflictError(ProgramEngineError):
    """Raised by stores when a structure save is based on a stale version."""

    code = ErrorCode.STRUCTURE_CONFLICT
