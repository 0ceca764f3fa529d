"""Directory queries behind the public happy hour listing."""

from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from shared.models import PERSISTED_WEEKDAYS, Venue

DAY_KEYS = tuple(day.column for day in PERSISTED_WEEKDAYS)
OTHER_NEIGHBORHOOD = "Other"


def today_key(now: Optional[datetime] = None) -> Optional[str]:
    """"mon".."fri" for today, None on weekends."""
    weekday = (now or datetime.now()).weekday()
    return DAY_KEYS[weekday] if weekday < len(DAY_KEYS) else None


def _runs_on(venue: Venue, key: str) -> bool:
    return bool(venue.days.weekday_flags().get(key))


def filter_venues(
    venues: Sequence[Venue],
    day: Optional[str] = None,
    happening_now: bool = False,
    now: Optional[datetime] = None,
) -> List[Venue]:
    if day and day != "all" and day not in DAY_KEYS:
        raise ValueError(f"Unknown day filter: {day}")

    filtered = list(venues)
    if day and day != "all":
        filtered = [venue for venue in filtered if _runs_on(venue, day)]
    key = today_key(now) if happening_now else None
    if key:
        filtered = [venue for venue in filtered if _runs_on(venue, key)]
    return filtered


def group_by_neighborhood(venues: Sequence[Venue]) -> List[Tuple[str, List[Venue]]]:
    groups: Dict[str, List[Venue]] = {}
    for venue in venues:
        groups.setdefault(venue.neighborhood or OTHER_NEIGHBORHOOD, []).append(venue)
    return sorted(groups.items(), key=lambda item: item[0].lower())
