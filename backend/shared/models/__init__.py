"""
Happy Hour Data Models
======================
Pydantic models shared by the deal pipeline and the API.
"""

from .enums import ErrorKind, PERSISTED_WEEKDAYS, ResultMode, Weekday, WorkflowState
from .deal import DaySchedule, ExtractedDeal, ImageBlob, Location, PlaceHint, VenueHint
from .venue import Venue, normalize_url

__all__ = [
    # Enums
    "ErrorKind",
    "PERSISTED_WEEKDAYS",
    "ResultMode",
    "Weekday",
    "WorkflowState",
    # Extraction
    "DaySchedule",
    "ExtractedDeal",
    "ImageBlob",
    "Location",
    "PlaceHint",
    "VenueHint",
    # Database
    "Venue",
    "normalize_url",
]
