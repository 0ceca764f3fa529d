"""
Deal Pipeline
=============
Extraction, venue matching, feedback refinement and persistence for the
happy hour deal updater.
"""

from .errors import DealError, ExtractionFailed, RefinementFailed, Result, SaveFailed, Unauthorized, VenueStoreError
from .workflow import DealWorkflow, Session

__all__ = [
    "DealError",
    "DealWorkflow",
    "ExtractionFailed",
    "RefinementFailed",
    "Result",
    "SaveFailed",
    "Session",
    "Unauthorized",
    "VenueStoreError",
]
