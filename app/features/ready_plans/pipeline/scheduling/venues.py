"""
Venue selection with batch-level dedup and a placeholder fallback.
"""

import re
from collections.abc import Collection, Sequence

from app.features.ready_plans.domain.models import (
    BatchState,
    Venue,
    VenueChoice,
    normalize_venue_name,
)

MAX_DISTANCE_MILES = 10.0
RATING_WEIGHT = 0.6
DISTANCE_WEIGHT = 0.4

PLACEHOLDER_NAMES = {
    "coffee": "Local Coffee Shop",
    "walk": "Local Park",
}
PLACEHOLDER_DEFAULT_NAME = "Local Restaurant"
PLACEHOLDER_RATING = 4.5
PLACEHOLDER_DISTANCE = "0.5 mi"

_DISTANCE_RE = re.compile(r"(\d+\.?\d*)")


def parse_distance_miles(distance: str | None) -> float:
    """'3.7 mi' -> 3.7; missing or unparsable counts as the max considered distance."""
    if not distance:
        return MAX_DISTANCE_MILES
    match = _DISTANCE_RE.search(distance)
    return float(match.group(1)) if match else MAX_DISTANCE_MILES


def score_venue(venue: Venue) -> float:
    distance_score = max(0.0, 1 - parse_distance_miles(venue.distance) / MAX_DISTANCE_MILES)
    return (venue.rating / 5) * RATING_WEIGHT + distance_score * DISTANCE_WEIGHT


def filter_used_venues(venues: Sequence[Venue], used_names: Collection[str]) -> list[Venue]:
    return [v for v in venues if normalize_venue_name(v.name) not in used_names]


def select_best_venue(venues: Sequence[Venue], used_names: Collection[str]) -> Venue | None:
    """Highest scoring venue whose normalized name has not been used, or None."""
    unused = filter_used_venues(venues, used_names)
    if not unused:
        return None
    return max(unused, key=score_venue)


def placeholder_venue(activity_type: str, city: str) -> Venue:
    return Venue(
        name=PLACEHOLDER_NAMES.get(activity_type, PLACEHOLDER_DEFAULT_NAME),
        address=city,
        rating=PLACEHOLDER_RATING,
        distance=PLACEHOLDER_DISTANCE,
    )


def choose_venue(
    venues: Sequence[Venue],
    state: BatchState,
    activity_type: str,
    city: str,
    *,
    allow_placeholder: bool = True,
) -> tuple[VenueChoice | None, BatchState]:
    """
    Pick a provider venue and mark it used, or fall back to a placeholder.

    Placeholders are not real venues and are never added to the used set.
    """
    venue = select_best_venue(venues, state.used_venue_names)
    if venue is not None:
        return VenueChoice(venue, placeholder=False), state.with_venue(venue.name)

    if not allow_placeholder:
        return None, state

    return VenueChoice(placeholder_venue(activity_type, city), placeholder=True), state
