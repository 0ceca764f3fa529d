import pytest
from pydantic import ValidationError

from shared.models import DaySchedule, ExtractedDeal, ImageBlob, Venue, Weekday, normalize_url
from tests.conftest import venue_row


def test_extracted_deal_always_has_all_seven_days():
    deal = ExtractedDeal.model_validate(
        {"restaurant_name": "Test Bar", "days": {"monday": True, "saturday": None}}
    )
    dumped = deal.model_dump()["days"]
    assert set(dumped) == {"monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"}
    assert dumped["monday"] is True
    assert dumped["saturday"] is False
    assert dumped["sunday"] is False


def test_extracted_deal_null_sections_become_defaults():
    deal = ExtractedDeal.model_validate({"days": None, "google_place": None, "restaurant_name": None})
    assert deal.restaurant_name == ""
    assert deal.days == DaySchedule()
    assert deal.google_place.name == ""


@pytest.mark.parametrize("raw,expected", [(1.7, 1.0), (-0.2, 0.0), ("0.8", 0.8), ("high", 0.0), (float("nan"), 0.0)])
def test_confidence_is_clamped(raw, expected):
    assert ExtractedDeal(confidence=raw).confidence == pytest.approx(expected)


def test_matched_venue_id_coerced_to_string_or_none():
    assert ExtractedDeal(matched_venue_id=42).matched_venue_id == "42"
    assert ExtractedDeal(matched_venue_id="").matched_venue_id is None
    assert ExtractedDeal(matched_venue_id=False).matched_venue_id is None


def test_schedule_helpers():
    schedule = DaySchedule.weekdays()
    assert schedule.weekday_flags() == {"mon": True, "tue": True, "wed": True, "thu": True, "fri": True}
    assert not schedule.has_weekend()

    toggled = schedule.toggle(Weekday.SATURDAY).toggle(Weekday.MONDAY)
    assert toggled.saturday is True
    assert toggled.monday is False
    assert toggled.has_weekend()


@pytest.mark.parametrize(
    "value,expected",
    [
        ("https://testbar.example.com/menu", "https://testbar.example.com/menu"),
        ("http://example.com", "http://example.com"),
        ("javascript:alert(1)", None),
        ("ftp://example.com/file", None),
        ("https://", None),
        ("https://exa mple.com", None),
        ("", None),
        (None, None),
    ],
)
def test_normalize_url(value, expected):
    assert normalize_url(value) == expected


def test_venue_drops_unsafe_urls():
    venue = Venue.from_row(venue_row(1, "Test Bar", restaurant_url="javascript:alert(1)", maps_url="not a url"))
    assert venue.restaurant_url is None
    assert venue.maps_url is None
    assert venue.to_row()["restaurant_url"] is None


def test_venue_requires_name_and_deal():
    with pytest.raises(ValidationError):
        Venue.from_row(venue_row(1, "  "))
    with pytest.raises(ValidationError):
        Venue.from_row(venue_row(1, "Test Bar", deal=""))


def test_venue_coordinates_are_paired():
    half = Venue.from_row(venue_row(1, "Test Bar", latitude=33.7, longitude=None))
    assert half.latitude is None and half.longitude is None

    full = Venue.from_row(venue_row(1, "Test Bar", latitude="33.7", longitude="-84.3"))
    assert (full.latitude, full.longitude) == (33.7, -84.3)


def test_venue_row_mapping():
    venue = Venue.from_row(venue_row(7, "Test Bar", mon=False, fri=True))
    assert venue.id == "7"
    assert venue.deal_description == "$5 drafts 4-7pm"
    assert venue.monday is False and venue.friday is True

    row = venue.to_row()
    assert "id" not in row
    assert row["deal"] == "$5 drafts 4-7pm"
    assert row["mon"] is False and row["fri"] is True
    assert row["last_updated"].startswith("2024-05-01")


def test_venue_listing_reports_full_week():
    listing = Venue.from_row(venue_row(3, "Test Bar")).to_listing()
    assert listing["deal_description"] == "$5 drafts 4-7pm"
    assert listing["days"]["monday"] is True
    assert listing["days"]["saturday"] is False
    assert listing["days"]["sunday"] is False


def test_venue_hint():
    hint = Venue.from_row(venue_row(3, "Test Bar", neighborhood=None)).to_hint()
    assert hint.id == "3"
    assert hint.name == "Test Bar"
    assert hint.neighborhood == ""


def test_image_blob_base64():
    blob = ImageBlob.from_base64("aGVsbG8=", "image/png")
    assert blob.data == b"hello"
    assert blob.media_type == "image/png"
    assert blob.to_base64() == "aGVsbG8="

    with pytest.raises(ValueError):
        ImageBlob.from_base64("not base64!!")


def test_image_blob_rejects_non_images():
    with pytest.raises(ValidationError):
        ImageBlob(data=b"%PDF", media_type="application/pdf")
    assert ImageBlob(data=b"x", media_type=None).media_type == "image/jpeg"
