"""Venue records as stored in the venues table."""

from datetime import datetime
from typing import Any, Dict, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator, model_validator

from .deal import DaySchedule, VenueHint
from .enums import PERSISTED_WEEKDAYS


def normalize_url(value: Any) -> Optional[str]:
    """Return an http(s) URL with a host, or None for anything else."""
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate or any(ch.isspace() for ch in candidate):
        return None
    try:
        parsed = urlparse(candidate)
    except ValueError:
        return None
    if parsed.scheme.lower() not in {"http", "https"} or not parsed.netloc:
        return None
    return candidate


class Venue(BaseModel):
    """Canonical venue row."""

    id: Optional[str] = None
    restaurant_name: str
    deal_description: str

    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False

    neighborhood: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    restaurant_url: Optional[str] = None
    maps_url: Optional[str] = None
    last_updated: Optional[datetime] = None

    model_config = {"extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v) if v is not None and v != "" else None

    @field_validator("restaurant_name", "deal_description", mode="before")
    @classmethod
    def require_text(cls, v):
        text = str(v).strip() if v is not None else ""
        if not text:
            raise ValueError("must not be empty")
        return text

    @field_validator("neighborhood", mode="before")
    @classmethod
    def coerce_neighborhood(cls, v):
        return (v or "").strip()

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def coerce_coordinate(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator("restaurant_url", "maps_url", mode="before")
    @classmethod
    def validate_url(cls, v):
        return normalize_url(v)

    @model_validator(mode="after")
    def pair_coordinates(self):
        if self.latitude is None or self.longitude is None:
            self.latitude = None
            self.longitude = None
        return self

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Venue":
        """Build a Venue from a venues-table (or CSV) row."""
        data = dict(row)
        if "deal" in data and "deal_description" not in data:
            data["deal_description"] = data.pop("deal")
        for day in PERSISTED_WEEKDAYS:
            if day.column in data and day.value not in data:
                data[day.value] = data.pop(day.column)
        return cls.model_validate(data)

    def to_row(self) -> Dict[str, Any]:
        """Column mapping for the venues table, without the id."""
        row: Dict[str, Any] = {
            "restaurant_name": self.restaurant_name,
            "deal": self.deal_description,
            "neighborhood": self.neighborhood,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "restaurant_url": self.restaurant_url,
            "maps_url": self.maps_url,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
        for day in PERSISTED_WEEKDAYS:
            row[day.column] = getattr(self, day.value)
        return row

    @property
    def days(self) -> DaySchedule:
        """Full-week view; weekends are never stored so they read as False."""
        return DaySchedule(**{day.value: getattr(self, day.value) for day in PERSISTED_WEEKDAYS})

    def to_hint(self) -> VenueHint:
        return VenueHint(
            id=self.id or "",
            name=self.restaurant_name,
            neighborhood=self.neighborhood,
            lat=self.latitude,
            lng=self.longitude,
        )

    def to_listing(self) -> Dict[str, Any]:
        """Shape served by GET /api/venues."""
        return {
            "id": self.id,
            "restaurant_name": self.restaurant_name,
            "deal_description": self.deal_description,
            "days": self.days.model_dump(),
            "neighborhood": self.neighborhood,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "restaurant_url": self.restaurant_url,
            "maps_url": self.maps_url,
        }
