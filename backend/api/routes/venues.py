"""
Public venue listing and directory.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from deals.directory import filter_venues, group_by_neighborhood
from deals.errors import VenueStoreError
from deals.matching import search_venues
from deals.services import Services

from ..db import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/venues", response_model=list)
def list_venues(services: Services = Depends(get_services)):
    """All venues in the deal-updater listing shape; empty when the store is down."""
    try:
        venues = services.store.list_venues()
    except VenueStoreError as e:
        logger.error("Failed to fetch venues: %s", e)
        return []
    return [venue.to_listing() for venue in venues]


@router.get("/directory", response_model=dict)
def directory(
    day: Optional[str] = None,
    happening_now: bool = False,
    q: str = "",
    services: Services = Depends(get_services),
):
    """Venues grouped by neighborhood, filtered by weekday and search text."""
    try:
        venues = services.store.list_venues()
    except VenueStoreError as e:
        logger.error("Failed to fetch venues: %s", e)
        venues = []

    try:
        venues = filter_venues(venues, day=day, happening_now=happening_now)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    venues = search_venues(venues, q)

    return {
        "total": len(venues),
        "neighborhoods": [
            {"neighborhood": name, "venues": [venue.to_listing() for venue in group]}
            for name, group in group_by_neighborhood(venues)
        ],
    }
