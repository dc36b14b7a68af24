from datetime import UTC, datetime, timedelta

from app.features.ready_plans.domain.models import (
    AvailabilityBlock,
    BatchState,
    NoCandidate,
    NoWindow,
    PlanDraft,
    RankedCandidate,
    SchedulingPolicy,
    SlotCollisionPolicy,
    TimeWindow,
    WindowSource,
)
from app.features.ready_plans.pipeline.scheduling import iteration_count, select_next_plan

BASE = datetime(2030, 1, 7, tzinfo=UTC)


def _creator_windows(days: int) -> list[TimeWindow]:
    return [
        TimeWindow(
            start=BASE + timedelta(days=d, hours=18),
            end=BASE + timedelta(days=d, hours=20),
            proposed_time=BASE + timedelta(days=d, hours=18, minutes=30),
            score=1.0,
        )
        for d in range(days)
    ]


def _candidates(count: int) -> list[RankedCandidate]:
    return [
        RankedCandidate(id=f"friend-{i}", similarity=0.9 - i * 0.1, shared_interests=[])
        for i in range(count)
    ]


def _fully_available(candidates) -> dict[str, list[AvailabilityBlock]]:
    block = AvailabilityBlock(start=BASE, end=BASE + timedelta(days=30))
    return {c.id: [block] for c in candidates}


def _run_batch(candidates, windows, counts, blocks, policy):
    state = BatchState()
    steps = []
    for i in range(iteration_count(windows, policy)):
        step, state = select_next_plan(state, candidates, windows, counts, blocks, i, policy)
        steps.append(step)
    return steps, state


def test_iteration_count_is_capped_by_batch_size_and_windows():
    policy = SchedulingPolicy()

    assert iteration_count(_creator_windows(10), policy) == 5
    assert iteration_count(_creator_windows(3), policy) == 3
    assert iteration_count([], policy) == 0


def test_full_batch_spreads_invitees_and_days_with_next_best_policy():
    candidates = _candidates(5)
    policy = SchedulingPolicy(slot_collision=SlotCollisionPolicy.NEXT_BEST)

    steps, state = _run_batch(
        candidates, _creator_windows(5), {}, _fully_available(candidates), policy
    )

    assert all(isinstance(s, PlanDraft) for s in steps)
    assert len({s.candidate.id for s in steps}) == 5
    assert len({s.window_choice.window.day_key for s in steps}) == 5
    assert all(s.window_choice.source is WindowSource.OVERLAP for s in steps)
    assert len(state.used_time_slots) == 5


def test_strict_policy_collides_on_the_best_day_for_fully_available_invitees():
    candidates = _candidates(5)
    policy = SchedulingPolicy(slot_collision=SlotCollisionPolicy.STRICT)

    steps, state = _run_batch(
        candidates, _creator_windows(5), {}, _fully_available(candidates), policy
    )

    assert len({s.candidate.id for s in steps}) == 5
    assert steps[0].window_choice.source is WindowSource.OVERLAP
    assert all(s.window_choice.source is WindowSource.LAST_RESORT for s in steps[1:])
    assert {s.window_choice.window.day_key for s in steps} == {BASE.date()}
    assert state.used_time_slots == frozenset({BASE.date()})


def test_single_eligible_candidate_yields_one_draft_and_no_candidate_skips():
    candidates = _candidates(3)
    counts = {"friend-0": 2, "friend-2": 3}

    steps, _ = _run_batch(
        candidates, _creator_windows(5), counts, _fully_available(candidates), SchedulingPolicy()
    )

    assert isinstance(steps[0], PlanDraft)
    assert steps[0].candidate.id == "friend-1"
    assert steps[1:] == [NoCandidate(i) for i in range(1, 5)]


def test_invitee_without_blocks_gets_creator_window_on_unused_day():
    candidates = _candidates(2)
    blocks = {"friend-0": [AvailabilityBlock(start=BASE, end=BASE + timedelta(days=30))]}

    steps, _ = _run_batch(candidates, _creator_windows(2), {}, blocks, SchedulingPolicy())

    first, second = steps
    assert first.window_choice.source is WindowSource.OVERLAP
    assert second.candidate.id == "friend-1"
    assert second.window_choice.source is WindowSource.CREATOR_WINDOW
    assert second.window_choice.window.day_key != first.window_choice.window.day_key


def test_draft_carries_deduped_interests_and_inferred_activity():
    candidate = RankedCandidate(
        id="friend-0", similarity=0.8, shared_interests=["Jazz Music", "Jazz Music", "coffee"]
    )

    step, _ = select_next_plan(
        BatchState(), [candidate], _creator_windows(1), {}, {}, 0, SchedulingPolicy()
    )

    assert step.shared_interests == ("Jazz Music", "coffee")
    assert step.activity_type == "concert"


def test_no_creator_windows_reports_no_window_for_the_selected_candidate():
    step, state = select_next_plan(
        BatchState(), _candidates(1), [], {}, {}, 0, SchedulingPolicy()
    )

    assert step == NoWindow(0, "friend-0")
    assert state.used_invitee_ids == frozenset({"friend-0"})
