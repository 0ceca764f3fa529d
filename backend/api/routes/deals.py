"""
Deal updater: extract, enhance (feedback) and save.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError, field_validator

from deals.services import Services
from shared.models import ExtractedDeal, ImageBlob, Location, VenueHint

from ..auth import require_member
from ..db import get_services

logger = logging.getLogger(__name__)

router = APIRouter()


class ImagePayload(BaseModel):
    data: str = Field(alias="base64")
    media_type: str = Field("image/jpeg", alias="mediaType")

    model_config = {"populate_by_name": True}


class ExtractRequest(BaseModel):
    images: List[ImagePayload] = Field(default_factory=list)
    text_input: str = Field("", alias="textInput")
    restaurant_name: str = Field("", alias="restaurantName")
    venues: Optional[List[VenueHint]] = None
    location: Optional[Location] = None

    model_config = {"populate_by_name": True}


class EnhanceRequest(BaseModel):
    extracted_data: ExtractedDeal = Field(alias="extractedData")
    feedback: str = ""

    model_config = {"populate_by_name": True}


class SaveRequest(BaseModel):
    extracted_data: ExtractedDeal = Field(alias="extractedData")
    matched_venue_id: Optional[str] = Field(None, alias="matchedVenueId")

    model_config = {"populate_by_name": True}

    @field_validator("matched_venue_id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return str(v) if v not in (None, "") else None


def _require_model(services: Services) -> None:
    if not services.model.is_configured:
        raise HTTPException(status_code=503, detail="Extraction model not configured")


@router.post("/extract-deal", response_model=dict)
def extract_deal(
    body: ExtractRequest,
    user=Depends(require_member),
    services: Services = Depends(get_services),
):
    """Structure a happy hour deal from text and/or base64 photos."""
    _require_model(services)
    try:
        images = [ImageBlob.from_base64(image.data, image.media_type) for image in body.images]
    except (ValueError, ValidationError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if not images and not body.text_input.strip():
        raise HTTPException(status_code=400, detail="Provide a deal description or at least one photo")

    deal = services.extractor.extract(
        images,
        body.text_input,
        body.restaurant_name,
        venues=body.venues,
        location=body.location,
    )
    return deal.model_dump()


@router.post("/enhance-deal", response_model=dict)
def enhance_deal(
    body: EnhanceRequest,
    user=Depends(require_member),
    services: Services = Depends(get_services),
):
    """Apply free-text feedback to an extracted deal."""
    _require_model(services)
    if not body.feedback.strip():
        raise HTTPException(status_code=400, detail="feedback required")
    return services.refiner.refine(body.extracted_data, body.feedback).model_dump()


@router.post("/deals", response_model=dict)
def save_deal(
    body: SaveRequest,
    user=Depends(require_member),
    services: Services = Depends(get_services),
):
    """Update the matched venue, or add a new one."""
    venue = services.persistence.save(body.extracted_data, body.matched_venue_id)
    return venue.model_dump(mode="json")
