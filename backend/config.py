"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    supabase_url: str = ""
    supabase_key: str = ""
    venues_csv_url: str = ""
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    llm_timeout_seconds: float = 60.0
    google_maps_api_key: str = ""
    region_city: str = "Atlanta"
    use_draft_on_extraction_failure: bool = True
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    supabase_url = os.getenv("SUPABASE_URL", "")
    supabase_key = os.getenv("SUPABASE_SECRET_KEY", "")
    gemini_api_key = os.getenv("GEMINI_API_KEY", "")
    google_maps_api_key = os.getenv("GOOGLE_MAPS_API_KEY", "")

    if not supabase_url or not supabase_key:
        logger.warning("SUPABASE_URL/SUPABASE_SECRET_KEY not set; venue store falls back to CSV.")
    if not gemini_api_key:
        logger.warning("GEMINI_API_KEY is not configured; deal extraction will be unavailable.")
    if not google_maps_api_key:
        logger.warning("GOOGLE_MAPS_API_KEY is not configured; saved venues will not be geocoded.")

    return Settings(
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        venues_csv_url=os.getenv("VENUES_CSV_URL", ""),
        gemini_api_key=gemini_api_key,
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-1.5-flash"),
        llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "60")),
        google_maps_api_key=google_maps_api_key,
        region_city=os.getenv("REGION_CITY", "Atlanta").strip() or "Atlanta",
        use_draft_on_extraction_failure=os.getenv("USE_DRAFT_ON_EXTRACTION_FAILURE", "true").lower() in _TRUTHY,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
