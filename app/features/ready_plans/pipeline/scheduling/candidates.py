"""
Candidate selection for one plan slot.
"""

from collections.abc import Mapping, Sequence

from app.features.ready_plans.domain.models import BatchState, RankedCandidate


def is_eligible(
    candidate: RankedCandidate,
    state: BatchState,
    recent_plan_counts: Mapping[str, int],
    max_recent_plans: int,
) -> bool:
    if candidate.id in state.used_invitee_ids:
        return False
    return recent_plan_counts.get(candidate.id, 0) < max_recent_plans


def select_candidate(
    candidates: Sequence[RankedCandidate],
    recent_plan_counts: Mapping[str, int],
    state: BatchState,
    max_recent_plans: int = 2,
) -> tuple[RankedCandidate | None, BatchState]:
    """
    Return the best-ranked candidate not used in this batch and under the recency cap.

    The list is expected in descending compatibility order. The chosen id is
    recorded in the returned state so later slots cannot pick it again.
    """
    for candidate in candidates:
        if is_eligible(candidate, state, recent_plan_counts, max_recent_plans):
            return candidate, state.with_invitee(candidate.id)
    return None, state
