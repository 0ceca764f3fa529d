"""
Venue Store
===========
Reads and writes the venues table, with a published CSV export as the
read-only fallback when the database is unreachable.
"""

import csv
import io
import logging
from typing import Any, Dict, Iterable, List, Optional

import requests
from pydantic import ValidationError
from supabase import Client

from shared.models import PERSISTED_WEEKDAYS, Venue

from .errors import SaveFailed, VenueStoreError

logger = logging.getLogger(__name__)

VENUES_TABLE = "venues"
_SESSION = requests.Session()
_TRUE_CELLS = {"true", "yes", "y", "1", "x"}


def _header_key(header: str) -> str:
    return "_".join((header or "").strip().lower().split())


def _csv_bool(value: Any) -> bool:
    return str(value or "").strip().lower() in _TRUE_CELLS


def rows_to_venues(rows: Iterable[Dict[str, Any]]) -> List[Venue]:
    """Validate raw rows, skipping (and logging) the ones that break the Venue invariant."""
    venues: List[Venue] = []
    for row in rows:
        try:
            venues.append(Venue.from_row(row))
        except ValidationError as exc:
            logger.warning("Skipping invalid venue row %s: %s", row.get("id"), exc.errors()[0]["msg"])
    return venues


def parse_venues_csv(text: str) -> List[Venue]:
    """Parse the spreadsheet export (same column names as the venues table)."""
    reader = csv.DictReader(io.StringIO(text))
    rows = []
    for raw in reader:
        row = {_header_key(key): value for key, value in raw.items() if key}
        for day in PERSISTED_WEEKDAYS:
            for key in (day.column, day.value):
                if key in row:
                    row[key] = _csv_bool(row[key])
        rows.append(row)
    return rows_to_venues(rows)


class VenueStore:
    """Venue persistence on Supabase, reads falling back to CSV."""

    def __init__(self, supabase: Optional[Client], csv_url: str = ""):
        self.supabase = supabase
        self.csv_url = csv_url

    def list_venues(self) -> List[Venue]:
        """All venues ordered by neighborhood; raises VenueStoreError if no source answers."""
        if self.supabase is not None:
            try:
                return self._fetch_from_supabase()
            except Exception as exc:
                logger.warning("Supabase venue fetch failed, trying CSV export: %s", exc)

        if self.csv_url:
            try:
                return self._fetch_from_csv()
            except requests.RequestException as exc:
                logger.error("CSV venue export unavailable: %s", exc)
                raise VenueStoreError("Venue CSV export unavailable") from exc

        raise VenueStoreError("No venue source configured")

    def get_venue(self, venue_id: str) -> Optional[Venue]:
        for venue in self.list_venues():
            if venue.id == str(venue_id):
                return venue
        return None

    def _fetch_from_supabase(self) -> List[Venue]:
        result = self.supabase.table(VENUES_TABLE).select("*").order("neighborhood").execute()
        return rows_to_venues(result.data or [])

    def _fetch_from_csv(self) -> List[Venue]:
        response = _SESSION.get(self.csv_url, timeout=10)
        response.raise_for_status()
        venues = parse_venues_csv(response.text)
        venues.sort(key=lambda venue: venue.neighborhood)
        return venues

    # =========================================================================
    # WRITES (database only)
    # =========================================================================

    def _require_client(self) -> Client:
        if self.supabase is None:
            raise SaveFailed("Venue database is not configured")
        return self.supabase

    def insert_venue(self, row: Dict[str, Any]) -> Venue:
        client = self._require_client()
        try:
            result = client.table(VENUES_TABLE).insert(row).execute()
        except Exception as exc:
            raise SaveFailed(f"Insert failed: {exc}") from exc
        if not result.data:
            raise SaveFailed("Insert returned no row")
        return self._saved(result.data[0])

    def update_venue(self, venue_id: str, row: Dict[str, Any]) -> Venue:
        client = self._require_client()
        try:
            result = client.table(VENUES_TABLE).update(row).eq("id", venue_id).execute()
        except Exception as exc:
            raise SaveFailed(f"Update of venue {venue_id} failed: {exc}") from exc
        if not result.data:
            raise SaveFailed(f"No venue with id {venue_id}")
        return self._saved(result.data[0])

    @staticmethod
    def _saved(row: Dict[str, Any]) -> Venue:
        try:
            return Venue.from_row(row)
        except ValidationError as exc:
            raise SaveFailed(f"Saved row is not a valid venue: {exc}") from exc
