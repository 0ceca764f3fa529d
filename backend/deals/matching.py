"""Decide whether an extracted deal belongs to a venue we already know."""

import logging
import math
from difflib import SequenceMatcher
from typing import Callable, List, NamedTuple, Optional, Sequence

from shared.models import ExtractedDeal, Location, Venue

logger = logging.getLogger(__name__)

PROXIMITY_RADIUS_KM = 1.0
PROXIMITY_BONUS = 0.1

MatchPolicy = Callable[[str, Sequence[Venue], Optional[Location]], Optional[Venue]]


class MatchCandidate(NamedTuple):
    """An extracted deal paired with the venue it resolved to, if any."""

    deal: ExtractedDeal
    venue: Optional[Venue]

    @property
    def is_new(self) -> bool:
        return self.venue is None


def _tokens(name: str) -> List[str]:
    return (name or "").lower().split()


def names_overlap(a: str, b: str) -> bool:
    """Loose name heuristic: shared first word or overlapping longer tokens."""
    tokens_a, tokens_b = _tokens(a), _tokens(b)
    if not tokens_a or not tokens_b:
        return False

    first_a, first_b = tokens_a[0], tokens_b[0]
    if first_a in first_b or first_b in first_a:
        return True

    long_a = [t for t in tokens_a if len(t) > 2]
    long_b = [t for t in tokens_b if len(t) > 2]
    return any(x in y or y in x for x in long_a for y in long_b)


def name_similarity(a: str, b: str) -> float:
    return SequenceMatcher(None, " ".join(_tokens(a)), " ".join(_tokens(b))).ratio()


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points."""
    rlat1, rlat2 = math.radians(lat1), math.radians(lat2)
    dlat = rlat2 - rlat1
    dlng = math.radians(lng2 - lng1)
    h = math.sin(dlat / 2) ** 2 + math.cos(rlat1) * math.cos(rlat2) * math.sin(dlng / 2) ** 2
    return 6371.0 * 2 * math.asin(math.sqrt(h))


def first_match(name: str, venues: Sequence[Venue], location: Optional[Location] = None) -> Optional[Venue]:
    """First venue passing the name heuristic, in list order."""
    for venue in venues:
        if names_overlap(name, venue.restaurant_name):
            return venue
    return None


def best_match(name: str, venues: Sequence[Venue], location: Optional[Location] = None) -> Optional[Venue]:
    """Highest-scoring venue passing the name heuristic.

    Score is the name similarity ratio, plus a bonus when the venue lies within
    PROXIMITY_RADIUS_KM of ``location``. Ties go to the most recently updated.
    """
    def score(venue: Venue) -> float:
        value = name_similarity(name, venue.restaurant_name)
        if location is not None and venue.latitude is not None:
            if distance_km(location.lat, location.lng, venue.latitude, venue.longitude) <= PROXIMITY_RADIUS_KM:
                value += PROXIMITY_BONUS
        return value

    def recency(venue: Venue) -> float:
        return venue.last_updated.timestamp() if venue.last_updated else float("-inf")

    candidates = [venue for venue in venues if names_overlap(name, venue.restaurant_name)]
    if not candidates:
        return None
    return max(candidates, key=lambda venue: (score(venue), recency(venue)))


def match(
    extracted: ExtractedDeal,
    existing_venues: Sequence[Venue],
    location: Optional[Location] = None,
    policy: MatchPolicy = best_match,
) -> Optional[Venue]:
    """Resolve the extracted deal to at most one existing venue.

    A venue id chosen by the model wins when it exists in ``existing_venues``;
    otherwise the name heuristic decides. Errors never escape: the deal is then
    treated as a new restaurant.
    """
    try:
        if extracted.matched_venue_id:
            for venue in existing_venues:
                if venue.id == extracted.matched_venue_id:
                    return venue
            logger.info("Model matched unknown venue id %s; using name heuristics", extracted.matched_venue_id)
        return policy(extracted.restaurant_name, existing_venues, location)
    except Exception as exc:
        logger.warning("Venue matching failed for %r, treating as new: %s", extracted.restaurant_name, exc)
        return None


def search_venues(venues: Sequence[Venue], query: str) -> List[Venue]:
    """Manual search over name, neighborhood and deal text."""
    q = (query or "").strip().lower()
    if not q:
        return list(venues)
    return [
        venue
        for venue in venues
        if q in venue.restaurant_name.lower()
        or q in venue.neighborhood.lower()
        or q in venue.deal_description.lower()
    ]
