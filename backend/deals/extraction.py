"""
Deal Extraction
===============
Turns free text and/or menu photos into an ExtractedDeal via the model.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from shared.models import DaySchedule, ExtractedDeal, ImageBlob, Location, PlaceHint, Venue, VenueHint

from .errors import ExtractionFailed
from .llm import DealModel, parse_json_object

logger = logging.getLogger(__name__)

DRAFT_CONFIDENCE = 0.5

_RESPONSE_SHAPE = """{
  "restaurant_name": "extracted or provided restaurant name",
  "deal_description": "detailed happy hour description with times, prices, and items",
  "days": {
    "monday": true/false,
    "tuesday": true/false,
    "wednesday": true/false,
    "thursday": true/false,
    "friday": true/false,
    "saturday": true/false,
    "sunday": true/false
  },
  "confidence": 0.85,
  "google_place": {
    "name": "restaurant name for Google search",
    "neighborhood": "estimated %(city)s neighborhood",
    "address": "estimated address if mentioned",
    "rating": null
  }%(match_key)s
}"""

_FOCUS = """Focus on:
- Accurate times (like "4-6 PM" or "Monday-Friday 5-7 PM")
- Specific prices and items
- Which days the deal applies to
- Any restrictions or conditions"""

_MATCH_RULES = """Existing restaurants in the database:
%(venues)s
%(location)s
Set "matched_venue_id" to the id of an existing restaurant ONLY when you are
confident it is the same physical restaurant (same place, not just a similar
or overlapping name). Otherwise set "matched_venue_id" to null."""


def serialize_venues(venues: Sequence[Union[Venue, VenueHint]]) -> List[Dict[str, Any]]:
    hints = [venue.to_hint() if isinstance(venue, Venue) else venue for venue in venues]
    return [hint.model_dump() for hint in hints]


def draft_deal(free_text: str, restaurant_name: str, region_city: str = "Atlanta") -> ExtractedDeal:
    """Low-confidence stand-in built from the raw inputs when extraction fails."""
    name = (restaurant_name or "").strip()
    return ExtractedDeal(
        restaurant_name=name or "Unknown Restaurant",
        deal_description=(free_text or "").strip() or "Happy hour deal",
        days=DaySchedule.weekdays(),
        confidence=DRAFT_CONFIDENCE,
        google_place=PlaceHint(name=name or "Unknown", neighborhood=region_city),
    )


def repair(payload: Dict[str, Any], free_text: str = "", restaurant_name: str = "") -> ExtractedDeal:
    """Coerce decoded model output into a complete ExtractedDeal."""
    deal = ExtractedDeal.model_validate(payload)
    updates: Dict[str, Any] = {}
    if not deal.restaurant_name and restaurant_name.strip():
        updates["restaurant_name"] = restaurant_name.strip()
    if not deal.deal_description and free_text.strip():
        updates["deal_description"] = free_text.strip()
    if not deal.google_place.name and (updates.get("restaurant_name") or deal.restaurant_name):
        place = deal.google_place.model_copy(update={"name": updates.get("restaurant_name") or deal.restaurant_name})
        updates["google_place"] = place
    return deal.model_copy(update=updates) if updates else deal


class DealExtractor:
    """Builds the extraction prompt, calls the model and repairs its reply."""

    def __init__(self, model: DealModel, region_city: str = "Atlanta"):
        self.model = model
        self.region_city = region_city

    def build_prompt(
        self,
        free_text: str,
        restaurant_name: str,
        image_count: int = 0,
        venues: Optional[Sequence[Union[Venue, VenueHint]]] = None,
        location: Optional[Location] = None,
    ) -> str:
        with_venues = venues is not None
        shape = _RESPONSE_SHAPE % {
            "city": self.region_city,
            "match_key": ',\n  "matched_venue_id": "id of the matching existing restaurant or null"' if with_venues else "",
        }
        sections = [
            "You extract happy hour information from text and images.",
            "Analyze %sthe following information to extract restaurant happy hour details:"
            % ("the provided images and " if image_count else ""),
            f'Restaurant Name: {json.dumps(restaurant_name or "")}\nDeal Description: {json.dumps(free_text or "")}',
        ]
        if with_venues:
            location_line = ""
            if location is not None:
                location_line = f"Submitter location ({location.source}): lat {location.lat}, lng {location.lng}\n"
            sections.append(
                _MATCH_RULES % {"venues": json.dumps(serialize_venues(venues)), "location": location_line}
            )
        sections.extend(
            [
                f"Return ONLY a JSON object with this exact structure:\n{shape}",
                _FOCUS,
                "DO NOT OUTPUT ANYTHING OTHER THAN VALID JSON.",
            ]
        )
        return "\n\n".join(sections)

    def extract(
        self,
        images: Sequence[ImageBlob],
        free_text: str,
        restaurant_name: str = "",
        venues: Optional[Sequence[Union[Venue, VenueHint]]] = None,
        location: Optional[Location] = None,
    ) -> ExtractedDeal:
        """Extract one deal; raises ExtractionFailed on transport or decode errors."""
        if not images and not (free_text or "").strip():
            raise ValueError("Provide a deal description or at least one photo")

        prompt = self.build_prompt(free_text, restaurant_name, len(images), venues, location)
        try:
            reply = self.model.generate(prompt, images)
        except Exception as exc:
            raise ExtractionFailed(f"Model request failed: {exc}") from exc

        try:
            payload = parse_json_object(reply)
            if venues is None:
                payload.pop("matched_venue_id", None)
            deal = repair(payload, free_text, restaurant_name)
        except ValueError as exc:
            logger.error("Could not decode extraction reply: %s", exc)
            raise ExtractionFailed("Model reply was not valid JSON") from exc

        logger.info(
            "Extracted %r (confidence %.2f, match %s)",
            deal.restaurant_name,
            deal.confidence,
            deal.matched_venue_id,
        )
        return deal
