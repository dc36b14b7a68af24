"""
Domain models for the ready plans feature.

Everything here is a plain dataclass. The scheduling pipeline works on these
shapes only, so it can be exercised without a database or HTTP client.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum
from typing import Any


def day_key(instant: datetime) -> date:
    """Calendar date (UTC) of an instant, used to keep one plan per day."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC).date()


def normalize_venue_name(name: str) -> str:
    return name.lower().strip()


@dataclass(slots=True)
class RankedCandidate:
    """A connection ranked by compatibility with the plan creator."""

    id: str
    similarity: float
    shared_interests: list[str] = field(default_factory=list)
    school: str | None = None
    location: str | None = None
    full_name: str | None = None


@dataclass(frozen=True, slots=True)
class AvailabilityBlock:
    """A raw free interval reported by one person."""

    start: datetime
    end: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> AvailabilityBlock:
        return cls(start=row["start_time"], end=row["end_time"])


@dataclass(frozen=True, slots=True)
class TimeWindow:
    """
    A scored interval with a proposed meeting instant.

    Creator windows come from the smart-window generator; overlap windows
    are derived by intersecting a creator window with an invitee block.
    """

    start: datetime
    end: datetime
    proposed_time: datetime
    score: float

    @property
    def day_key(self) -> date:
        return day_key(self.start)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


class WindowSource(StrEnum):
    OVERLAP = "overlap"
    CREATOR_WINDOW = "creator_window"
    LAST_RESORT = "last_resort"


class SlotCollisionPolicy(StrEnum):
    # Only the best overlap is considered; a taken day falls through to the last resort
    STRICT = "strict"
    # Walk down the sorted overlaps to the first unused day
    NEXT_BEST = "next_best"


@dataclass(frozen=True, slots=True)
class WindowChoice:
    window: TimeWindow
    source: WindowSource


@dataclass(slots=True)
class Venue:
    name: str
    address: str
    rating: float
    distance: str | None = None
    yelp_url: str | None = None
    price: str | None = None

    @property
    def normalized_name(self) -> str:
        return normalize_venue_name(self.name)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "address": self.address, "rating": self.rating}
        for key in ("distance", "yelp_url", "price"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Venue:
        return cls(
            name=data["name"],
            address=data.get("address", ""),
            rating=float(data.get("rating") or 0.0),
            distance=data.get("distance"),
            yelp_url=data.get("yelp_url"),
            price=data.get("price"),
        )


@dataclass(frozen=True, slots=True)
class VenueChoice:
    venue: Venue
    placeholder: bool


@dataclass(frozen=True, slots=True)
class BatchState:
    """
    Dedup state owned by one generation request.

    Immutable; every transition returns a new instance so each scheduling
    step can be tested in isolation.
    """

    used_invitee_ids: frozenset[str] = frozenset()
    used_time_slots: frozenset[date] = frozenset()
    used_venue_names: frozenset[str] = frozenset()

    def with_invitee(self, invitee_id: str) -> BatchState:
        return replace(self, used_invitee_ids=self.used_invitee_ids | {invitee_id})

    def with_time_slot(self, slot: date) -> BatchState:
        return replace(self, used_time_slots=self.used_time_slots | {slot})

    def with_venue(self, venue_name: str) -> BatchState:
        return replace(
            self, used_venue_names=self.used_venue_names | {normalize_venue_name(venue_name)}
        )


@dataclass(frozen=True, slots=True)
class SchedulingPolicy:
    batch_size: int = 5
    max_recent_plans: int = 2
    min_overlap: timedelta = timedelta(hours=1)
    availability_match_bonus: float = 0.2
    commit_rule_hours: int = 24
    commit_min_acceptances: int = 2
    max_shared_interests: int = 5
    slot_collision: SlotCollisionPolicy = SlotCollisionPolicy.STRICT
    allow_placeholder_venues: bool = True

    @classmethod
    def from_settings(cls, settings) -> SchedulingPolicy:
        return cls(
            batch_size=settings.PLAN_BATCH_SIZE,
            max_recent_plans=settings.PLAN_MAX_RECENT_PLANS,
            min_overlap=timedelta(minutes=settings.PLAN_MIN_OVERLAP_MINUTES),
            availability_match_bonus=settings.PLAN_AVAILABILITY_MATCH_BONUS,
            commit_rule_hours=settings.PLAN_COMMIT_RULE_HOURS,
            commit_min_acceptances=settings.PLAN_COMMIT_MIN_ACCEPTANCES,
            slot_collision=SlotCollisionPolicy(settings.PLAN_SLOT_COLLISION_POLICY),
            allow_placeholder_venues=settings.PLAN_ALLOW_PLACEHOLDER_VENUES,
        )


@dataclass(frozen=True, slots=True)
class PlanDraft:
    """Output of the pure scheduler: who, when and what, before any I/O."""

    iteration: int
    candidate: RankedCandidate
    window_choice: WindowChoice
    activity_type: str
    shared_interests: tuple[str, ...]


# Iteration outcomes. Exactly one is recorded per loop index.


@dataclass(frozen=True, slots=True)
class Selected:
    iteration: int
    plan: dict[str, Any]


@dataclass(frozen=True, slots=True)
class NoCandidate:
    iteration: int


@dataclass(frozen=True, slots=True)
class NoWindow:
    iteration: int
    invitee_id: str


@dataclass(frozen=True, slots=True)
class NoVenue:
    iteration: int
    invitee_id: str
    activity_type: str


@dataclass(frozen=True, slots=True)
class PersistFailed:
    iteration: int
    invitee_id: str
    error: str


@dataclass(frozen=True, slots=True)
class IterationFailed:
    """Unexpected error while completing a draft (venue, title or assembly)."""

    iteration: int
    invitee_id: str
    error: str


IterationSkip = NoCandidate | NoWindow
IterationOutcome = (
    Selected | NoCandidate | NoWindow | NoVenue | PersistFailed | IterationFailed
)


@dataclass(slots=True)
class GenerationResult:
    plans: list[dict[str, Any]]
    outcomes: list[IterationOutcome]

    @property
    def plans_generated(self) -> int:
        return len(self.plans)


@dataclass(frozen=True, slots=True)
class LocalNetwork:
    """Accepted connections of a user, and the subset located in a city."""

    connection_ids: list[str]
    local_connection_ids: list[str]

    @property
    def local_friend_count(self) -> int:
        return len(self.local_connection_ids)
