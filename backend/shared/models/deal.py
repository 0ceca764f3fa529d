"""AI extraction models."""

import base64
import binascii
from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from .enums import PERSISTED_WEEKDAYS, Weekday


class DaySchedule(BaseModel):
    """Full seven-day schedule; missing or null days are False."""

    monday: bool = False
    tuesday: bool = False
    wednesday: bool = False
    thursday: bool = False
    friday: bool = False
    saturday: bool = False
    sunday: bool = False

    model_config = {"extra": "ignore"}

    @field_validator("*", mode="before")
    @classmethod
    def coerce_missing(cls, v):
        return False if v is None else v

    @classmethod
    def weekdays(cls) -> "DaySchedule":
        return cls(**{day.value: True for day in PERSISTED_WEEKDAYS})

    def weekday_flags(self) -> Dict[str, bool]:
        """Monday-Friday flags keyed by venues-table column."""
        return {day.column: getattr(self, day.value) for day in PERSISTED_WEEKDAYS}

    def has_weekend(self) -> bool:
        return self.saturday or self.sunday

    def toggle(self, day: Weekday) -> "DaySchedule":
        return self.model_copy(update={day.value: not getattr(self, day.value)})


class PlaceHint(BaseModel):
    """Best-effort place details guessed by the model."""

    name: str = ""
    neighborhood: str = ""
    address: str = ""
    rating: Optional[float] = None

    model_config = {"extra": "ignore"}

    @field_validator("name", "neighborhood", "address", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("rating", mode="before")
    @classmethod
    def coerce_rating(cls, v):
        try:
            return float(v) if v is not None and v != "" else None
        except (TypeError, ValueError):
            return None


class ExtractedDeal(BaseModel):
    """Happy hour details extracted by the model from text and photos."""

    restaurant_name: str = Field("", description="Restaurant name")
    deal_description: str = Field("", description="Times, prices, items and conditions")
    days: DaySchedule = Field(default_factory=DaySchedule)
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    google_place: PlaceHint = Field(default_factory=PlaceHint)
    matched_venue_id: Optional[str] = None

    model_config = {"extra": "ignore"}

    @field_validator("restaurant_name", "deal_description", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("days", "google_place", mode="before")
    @classmethod
    def coerce_section(cls, v):
        return {} if v is None else v

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0.0
        if value != value:  # NaN
            return 0.0
        return min(max(value, 0.0), 1.0)

    @field_validator("matched_venue_id", mode="before")
    @classmethod
    def coerce_venue_id(cls, v):
        if v is None or isinstance(v, bool):
            return None
        text = str(v).strip()
        return text or None


class ImageBlob(BaseModel):
    """A captured photo: raw bytes plus an image MIME type."""

    data: bytes
    media_type: str = "image/jpeg"

    @field_validator("media_type", mode="before")
    @classmethod
    def require_image_type(cls, v):
        media_type = (v or "image/jpeg").strip().lower()
        if not media_type.startswith("image/"):
            raise ValueError(f"unsupported media type: {media_type}")
        return media_type

    @classmethod
    def from_base64(cls, encoded: str, media_type: Optional[str] = None) -> "ImageBlob":
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("image is not valid base64") from exc
        return cls(data=data, media_type=media_type)

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class VenueHint(BaseModel):
    """The slice of a venue sent to the model for matching."""

    id: str
    name: str
    neighborhood: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v) if v is not None else v

    @field_validator("neighborhood", mode="before")
    @classmethod
    def coerce_neighborhood(cls, v):
        return v or ""


class Location(BaseModel):
    """Where the submitter was (or the photo was taken)."""

    lat: float
    lng: float
    source: str = "unknown"
