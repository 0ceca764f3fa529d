"""Write an accepted deal to the venues table."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError

from shared.models import PERSISTED_WEEKDAYS, ExtractedDeal, Venue

from .enrichment import GooglePlacesEnricher, PlaceMatch
from .errors import SaveFailed
from .store import VenueStore

logger = logging.getLogger(__name__)

# Columns that keep their stored value on update when geocoding found nothing.
_GEOCODED_COLUMNS = ("latitude", "longitude", "restaurant_url", "maps_url")


class DealPersistence:
    def __init__(self, store: VenueStore, enricher: Optional[GooglePlacesEnricher] = None):
        self.store = store
        self.enricher = enricher

    def geocode(self, extracted: ExtractedDeal) -> Optional[PlaceMatch]:
        if self.enricher is None or not self.enricher.is_configured:
            return None
        place = self.enricher.find_place(extracted.restaurant_name)
        if place is None:
            logger.info("Saving %r without coordinates", extracted.restaurant_name)
        return place

    def build_venue(self, extracted: ExtractedDeal, place: Optional[PlaceMatch], now: datetime) -> Venue:
        """Map the extracted week onto the Monday-Friday venue columns."""
        if extracted.days.has_weekend():
            logger.debug("Weekend flags for %r are not stored", extracted.restaurant_name)

        neighborhood = (place.neighborhood if place else None) or extracted.google_place.neighborhood
        try:
            return Venue(
                restaurant_name=extracted.restaurant_name,
                deal_description=extracted.deal_description,
                neighborhood=neighborhood,
                latitude=place.latitude if place else None,
                longitude=place.longitude if place else None,
                restaurant_url=place.website if place else None,
                maps_url=place.maps_url if place else None,
                last_updated=now,
                **{day.value: getattr(extracted.days, day.value) for day in PERSISTED_WEEKDAYS},
            )
        except ValidationError as exc:
            raise SaveFailed(f"Deal is incomplete: {exc.errors()[0]['loc'][0]} is required") from exc

    def save(self, extracted: ExtractedDeal, matched_venue_id: Optional[str] = None, now: Optional[datetime] = None) -> Venue:
        """Update the matched venue in place, or insert a new one."""
        place = self.geocode(extracted)
        venue = self.build_venue(extracted, place, now or datetime.now(timezone.utc))
        row: Dict[str, Any] = venue.to_row()

        if matched_venue_id:
            if place is None:
                for column in _GEOCODED_COLUMNS:
                    row.pop(column)
            if not row["neighborhood"]:
                row.pop("neighborhood")
            saved = self.store.update_venue(str(matched_venue_id), row)
            logger.info("Updated venue %s (%s)", saved.id, saved.restaurant_name)
        else:
            saved = self.store.insert_venue(row)
            logger.info("Added venue %s (%s)", saved.id, saved.restaurant_name)
        return saved
