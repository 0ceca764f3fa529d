import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure backend modules are importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config import Settings  # noqa: E402
from deals.services import build_services  # noqa: E402
from shared.models import Venue  # noqa: E402


class FakeModel:
    """Canned model: replies are returned in order; exceptions are raised."""

    def __init__(self, *replies, configured=True):
        self.replies = list(replies)
        self.calls = []
        self.configured = configured

    @property
    def is_configured(self):
        return self.configured

    def generate(self, prompt, images=()):
        self.calls.append((prompt, list(images)))
        if not self.replies:
            raise RuntimeError("no canned reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload = None
        self.filters = []
        self.order_by = None

    def select(self, *columns):
        self.op = "select"
        return self

    def order(self, column, desc=False):
        self.order_by = column
        return self

    def insert(self, row):
        self.op = "insert"
        self.payload = dict(row)
        return self

    def update(self, row):
        self.op = "update"
        self.payload = dict(row)
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def execute(self):
        self.db.executed.append((self.table, self.op, self.payload, list(self.filters)))
        if self.db.fail:
            raise RuntimeError("connection refused")

        rows = self.db.tables.setdefault(self.table, [])
        if self.op == "insert":
            self.db.last_id += 1
            row = {"id": self.db.last_id, **self.payload}
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])

        matched = [r for r in rows if all(str(r.get(c)) == str(v) for c, v in self.filters)]
        if self.op == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=[dict(r) for r in matched])

        result = [dict(r) for r in matched]
        if self.order_by:
            result.sort(key=lambda r: r.get(self.order_by) or "")
        return SimpleNamespace(data=result)


class FakeAuth:
    def __init__(self, valid_tokens):
        self.valid_tokens = set(valid_tokens)

    def get_user(self, token):
        if token not in self.valid_tokens:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=SimpleNamespace(id="user-1", email="member@example.com"))


class FakeSupabase:
    def __init__(self, rows=None, fail=False, tokens=("good-token",)):
        self.tables = {"venues": [dict(r) for r in (rows or [])]}
        self.last_id = max([int(r["id"]) for r in self.tables["venues"]] or [0])
        self.fail = fail
        self.executed = []
        self.auth = FakeAuth(tokens)

    def table(self, name):
        return FakeQuery(self, name)


def venue_row(id, name, deal="$5 drafts 4-7pm", neighborhood="Midtown", **extra):
    row = {
        "id": id,
        "restaurant_name": name,
        "deal": deal,
        "neighborhood": neighborhood,
        "latitude": None,
        "longitude": None,
        "restaurant_url": None,
        "maps_url": None,
        "mon": True,
        "tue": True,
        "wed": True,
        "thu": True,
        "fri": True,
        "last_updated": "2024-05-01T12:00:00+00:00",
    }
    row.update(extra)
    return row


def make_venue(id, name, **extra) -> Venue:
    return Venue.from_row(venue_row(id, name, **extra))


def make_place(**overrides):
    fields = {
        "id": "place-1",
        "display_name": SimpleNamespace(text="Test Bar"),
        "formatted_address": "100 Peachtree St NE, Atlanta, GA",
        "location": SimpleNamespace(latitude=33.77, longitude=-84.38),
        "website_uri": "https://testbar.example.com",
        "google_maps_uri": "https://maps.google.com/?cid=123",
        "address_components": [
            SimpleNamespace(long_text="Old Fourth Ward", short_text="O4W", types=["neighborhood", "political"]),
            SimpleNamespace(long_text="Atlanta", short_text="Atlanta", types=["locality", "political"]),
        ],
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class FakePlacesClient:
    def __init__(self, places=None, error=None):
        self.places = places if places is not None else [make_place()]
        self.error = error
        self.requests = []

    def search_text(self, request=None, metadata=None):
        self.requests.append((request, metadata))
        if self.error:
            raise self.error
        return SimpleNamespace(places=list(self.places))


@pytest.fixture
def settings():
    return Settings(region_city="Atlanta", gemini_api_key="test-key")


@pytest.fixture
def make_services(settings):
    def _make(model=None, supabase=None, enricher=None, **overrides):
        from dataclasses import replace

        return build_services(
            settings=replace(settings, **overrides),
            supabase=supabase if supabase is not None else FakeSupabase(),
            model=model or FakeModel(),
            enricher=enricher,
        )

    return _make
