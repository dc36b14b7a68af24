"""
Pure plan scheduler.

``select_next_plan`` runs the SELECT_CANDIDATE, RESOLVE_WINDOW and
RESOLVE_ACTIVITY steps for one iteration and returns either a draft or the
reason the slot was skipped, together with the next batch state. Venue
lookup, titles and persistence happen in the caller.
"""

from collections.abc import Mapping, Sequence

from app.features.ready_plans.domain.models import (
    AvailabilityBlock,
    BatchState,
    NoCandidate,
    NoWindow,
    PlanDraft,
    RankedCandidate,
    SchedulingPolicy,
    TimeWindow,
)

from .activity import dedupe_interests, infer_activity_type
from .candidates import select_candidate
from .windows import resolve_window


def iteration_count(creator_windows: Sequence[TimeWindow], policy: SchedulingPolicy) -> int:
    """One plan per creator window, capped by the batch size."""
    return min(policy.batch_size, len(creator_windows))


def select_next_plan(
    state: BatchState,
    candidates: Sequence[RankedCandidate],
    creator_windows: Sequence[TimeWindow],
    recent_plan_counts: Mapping[str, int],
    invitee_blocks: Mapping[str, Sequence[AvailabilityBlock]],
    iteration: int,
    policy: SchedulingPolicy,
) -> tuple[PlanDraft | NoCandidate | NoWindow, BatchState]:
    candidate, state = select_candidate(
        candidates, recent_plan_counts, state, policy.max_recent_plans
    )
    if candidate is None:
        return NoCandidate(iteration), state

    window_choice, state = resolve_window(
        creator_windows,
        invitee_blocks.get(candidate.id, ()),
        state,
        min_duration=policy.min_overlap,
        bonus=policy.availability_match_bonus,
        collision_policy=policy.slot_collision,
    )
    if window_choice is None:
        return NoWindow(iteration, candidate.id), state

    shared_interests = dedupe_interests(candidate.shared_interests, policy.max_shared_interests)
    draft = PlanDraft(
        iteration=iteration,
        candidate=candidate,
        window_choice=window_choice,
        activity_type=infer_activity_type(shared_interests, iteration),
        shared_interests=tuple(shared_interests),
    )
    return draft, state
