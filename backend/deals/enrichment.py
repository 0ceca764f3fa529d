"""
Google Places Geocoding (New Places V1 API)
===========================================
Looks up a venue by name to fill in coordinates, links and neighborhood.
"""

import logging
from typing import Optional, Sequence, Tuple

from google.maps import places_v1
from pydantic import BaseModel

logger = logging.getLogger(__name__)

ATLANTA_CENTER = (33.7490, -84.3880)
SEARCH_RADIUS_METERS = 25000.0

_FIELD_MASK = ",".join(
    [
        "places.id",
        "places.displayName",
        "places.formattedAddress",
        "places.location",
        "places.googleMapsUri",
        "places.websiteUri",
        "places.addressComponents",
    ]
)


class PlaceMatch(BaseModel):
    """Geocoding result for one venue."""
    place_id: str
    name: str
    address: str = ""
    latitude: float
    longitude: float
    website: Optional[str] = None
    maps_url: Optional[str] = None
    neighborhood: Optional[str] = None


def pick_neighborhood(components: Sequence) -> Optional[str]:
    """Prefer a "neighborhood" address component over a "sublocality" one."""
    sublocality = None
    for component in components or []:
        types = list(getattr(component, "types", None) or [])
        text = getattr(component, "long_text", None) or getattr(component, "short_text", None)
        if not text:
            continue
        if "neighborhood" in types:
            return text
        if sublocality is None and any(t.startswith("sublocality") for t in types):
            sublocality = text
    return sublocality


class GooglePlacesEnricher:
    """Uses the google-maps-places client to geocode saved venues."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        city: str = "Atlanta",
        center: Tuple[float, float] = ATLANTA_CENTER,
        client: Optional[places_v1.PlacesClient] = None,
    ):
        self.api_key = api_key
        self.city = city
        self.center = center
        self.client = client or self._init_client()

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def _init_client(self) -> Optional[places_v1.PlacesClient]:
        if not self.api_key:
            logger.info("GOOGLE_MAPS_API_KEY not set; geocoding disabled")
            return None
        try:
            return places_v1.PlacesClient(client_options={"api_key": self.api_key})
        except Exception as e:
            logger.error(f"Failed to initialize Places V1 client: {e}")
            return None

    def find_place(self, restaurant_name: str) -> Optional[PlaceMatch]:
        """Best text-search hit for ``restaurant_name`` in the region, or None."""
        if not self.client or not restaurant_name.strip():
            return None

        request = {
            "text_query": f"{restaurant_name} {self.city}",
            "max_result_count": 1,
            "location_bias": {
                "circle": {
                    "center": {"latitude": self.center[0], "longitude": self.center[1]},
                    "radius": SEARCH_RADIUS_METERS,
                }
            },
        }
        try:
            response = self.client.search_text(request=request, metadata=[("x-goog-fieldmask", _FIELD_MASK)])
        except Exception as e:
            logger.warning(f"Places lookup failed for {restaurant_name}: {e}")
            return None

        if not response.places:
            logger.warning(f"No Google result for: {restaurant_name}")
            return None

        place = response.places[0]
        if not place.location:
            return None
        return PlaceMatch(
            place_id=place.id,
            name=place.display_name.text if place.display_name else restaurant_name,
            address=place.formatted_address or "",
            latitude=place.location.latitude,
            longitude=place.location.longitude,
            website=place.website_uri or None,
            maps_url=place.google_maps_uri or None,
            neighborhood=pick_neighborhood(place.address_components),
        )
