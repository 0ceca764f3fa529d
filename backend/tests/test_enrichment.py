from types import SimpleNamespace

from deals.enrichment import GooglePlacesEnricher, pick_neighborhood
from tests.conftest import FakePlacesClient, make_place


def component(text, *types, short=None):
    return SimpleNamespace(long_text=text, short_text=short or text, types=list(types))


def test_find_place_maps_result():
    client = FakePlacesClient()
    place = GooglePlacesEnricher(city="Atlanta", client=client).find_place("Test Bar")

    assert place.place_id == "place-1"
    assert (place.latitude, place.longitude) == (33.77, -84.38)
    assert place.website == "https://testbar.example.com"
    assert place.maps_url == "https://maps.google.com/?cid=123"
    assert place.neighborhood == "Old Fourth Ward"

    request, metadata = client.requests[0]
    assert request["text_query"] == "Test Bar Atlanta"
    assert request["max_result_count"] == 1
    assert metadata[0][0] == "x-goog-fieldmask"
    assert "places.addressComponents" in metadata[0][1]


def test_find_place_without_results():
    assert GooglePlacesEnricher(client=FakePlacesClient(places=[])).find_place("Nowhere") is None
    no_location = make_place(location=None)
    assert GooglePlacesEnricher(client=FakePlacesClient(places=[no_location])).find_place("Test Bar") is None


def test_find_place_absorbs_errors():
    enricher = GooglePlacesEnricher(client=FakePlacesClient(error=RuntimeError("PERMISSION_DENIED")))
    assert enricher.find_place("Test Bar") is None


def test_unconfigured_enricher():
    enricher = GooglePlacesEnricher(api_key=None)
    assert not enricher.is_configured
    assert enricher.find_place("Test Bar") is None


def test_empty_name_skips_lookup():
    client = FakePlacesClient()
    assert GooglePlacesEnricher(client=client).find_place("  ") is None
    assert client.requests == []


def test_pick_neighborhood_prefers_neighborhood_over_sublocality():
    components = [
        component("Fulton County", "administrative_area_level_2"),
        component("Buckhead Village", "sublocality_level_1", "sublocality"),
        component("Buckhead", "neighborhood", "political"),
    ]
    assert pick_neighborhood(components) == "Buckhead"
    assert pick_neighborhood(components[:2]) == "Buckhead Village"
    assert pick_neighborhood([component("", "neighborhood", short="O4W")]) == "O4W"
    assert pick_neighborhood([]) is None
    assert pick_neighborhood(None) is None
