"""Enumeration types for the Happy Hour deal updater."""

from enum import Enum


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def column(self) -> str:
        """Short column name used by the venues table (mon..sun)."""
        return self.value[:3]


# Only Monday-Friday have columns in the venues table.
PERSISTED_WEEKDAYS = (
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
)


class WorkflowState(str, Enum):
    CAPTURE = "capture"
    PROCESSING = "processing"
    RESULT = "result"
    SUCCESS = "success"


class ResultMode(str, Enum):
    COMPARISON = "comparison"
    NEW_ENTRY = "new_entry"


class ErrorKind(str, Enum):
    EXTRACTION_FAILED = "extraction_failed"
    REFINEMENT_FAILED = "refinement_failed"
    SAVE_FAILED = "save_failed"
    STORE_UNAVAILABLE = "store_unavailable"
    UNAUTHORIZED = "unauthorized"
    UNEXPECTED = "unexpected"
