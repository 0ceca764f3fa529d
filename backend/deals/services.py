from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

from supabase import Client

from config import Settings, get_settings
from db import get_supabase

from .enrichment import GooglePlacesEnricher
from .extraction import DealExtractor
from .llm import DealModel, GeminiDealModel
from .persistence import DealPersistence
from .refinement import DealRefiner
from .store import VenueStore
from .workflow import DealWorkflow


@dataclass
class Services:
    """Container for all deal pipeline services."""
    settings: Settings
    model: DealModel
    extractor: DealExtractor
    refiner: DealRefiner
    store: VenueStore
    persistence: DealPersistence
    enricher: Optional[GooglePlacesEnricher] = None

    def workflow(self, **kwargs) -> DealWorkflow:
        return DealWorkflow(
            extractor=self.extractor,
            refiner=self.refiner,
            persistence=self.persistence,
            store=self.store,
            use_draft=self.settings.use_draft_on_extraction_failure,
            region_city=self.settings.region_city,
            **kwargs,
        )


def build_services(
    settings: Optional[Settings] = None,
    supabase: Optional[Client] = None,
    model: Optional[DealModel] = None,
    enricher: Optional[GooglePlacesEnricher] = None,
) -> Services:
    """Wire the pipeline from settings; any piece can be injected (tests, CLI)."""
    settings = settings or get_settings()
    if supabase is None:
        supabase = get_supabase()
    if model is None:
        model = GeminiDealModel(settings.gemini_api_key, settings.gemini_model, settings.llm_timeout_seconds)
    if enricher is None:
        enricher = GooglePlacesEnricher(settings.google_maps_api_key, city=settings.region_city)

    store = VenueStore(supabase, csv_url=settings.venues_csv_url)
    return Services(
        settings=settings,
        model=model,
        extractor=DealExtractor(model, region_city=settings.region_city),
        refiner=DealRefiner(model),
        store=store,
        persistence=DealPersistence(store, enricher),
        enricher=enricher,
    )


@asynccontextmanager
async def create_services(**overrides):
    """
    Initialize all services with proper lifecycle management.

    Usage:
        async with create_services() as services:
            # use services.extractor, services.store, etc.
    """
    services = build_services(**overrides)
    try:
        yield services
    finally:
        # Clients hold no open connections that need closing.
        pass
