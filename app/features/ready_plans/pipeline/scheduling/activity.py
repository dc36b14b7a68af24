"""
Activity type inference from shared interests.
"""

from collections.abc import Iterable

# Rotated by iteration index when a candidate shares no interests
FALLBACK_ACTIVITIES = ("coffee", "walk", "casual_food", "museum", "art")

DEFAULT_ACTIVITY = "coffee"

# Checked in order; the first keyword contained in an interest wins
INTEREST_KEYWORDS = (
    ("coffee", "coffee"),
    ("food", "casual_food"),
    ("restaurant", "casual_food"),
    ("art", "art"),
    ("museum", "museum"),
    ("music", "concert"),
    ("fitness", "fitness"),
    ("sports", "sports"),
    ("books", "bookstore"),
    ("reading", "bookstore"),
)


def dedupe_interests(interests: Iterable[str] | None, limit: int = 5) -> list[str]:
    """Drop repeats and empties, keep first-seen order, cap at ``limit``."""
    unique = dict.fromkeys(i for i in (interests or []) if i)
    return list(unique)[:limit]


def classify_interests(interests: Iterable[str]) -> str:
    for interest in interests:
        lowered = interest.lower()
        for keyword, activity in INTEREST_KEYWORDS:
            if keyword in lowered:
                return activity
    return DEFAULT_ACTIVITY


def fallback_activity(iteration: int) -> str:
    return FALLBACK_ACTIVITIES[iteration % len(FALLBACK_ACTIVITIES)]


def infer_activity_type(shared_interests: list[str], iteration: int) -> str:
    if shared_interests:
        return classify_interests(shared_interests)
    return fallback_activity(iteration)
