"""
Two-party availability intersection and time-slot selection.

Creator windows are pre-scored; invitee blocks are raw intervals. An overlap
keeps the creator's score plus a flat availability bonus, so a real match
always outranks the creator window it came from.
"""

from collections.abc import Sequence
from datetime import timedelta

from app.features.ready_plans.domain.models import (
    AvailabilityBlock,
    BatchState,
    SlotCollisionPolicy,
    TimeWindow,
    WindowChoice,
    WindowSource,
)


def overlap_window(
    window: TimeWindow,
    block: AvailabilityBlock,
    *,
    min_duration: timedelta = timedelta(hours=1),
    bonus: float = 0.2,
) -> TimeWindow | None:
    """Clip a creator window to an invitee block, or None if they share less than min_duration."""
    if not (window.start < block.end and window.end > block.start):
        return None

    start = max(window.start, block.start)
    end = min(window.end, block.end)
    if end - start < min_duration:
        return None

    proposed = window.proposed_time
    if proposed < start or proposed > end:
        proposed = start + (end - start) / 2

    return TimeWindow(start=start, end=end, proposed_time=proposed, score=window.score + bonus)


def intersect_windows(
    creator_windows: Sequence[TimeWindow],
    invitee_blocks: Sequence[AvailabilityBlock],
    *,
    min_duration: timedelta = timedelta(hours=1),
    bonus: float = 0.2,
) -> list[TimeWindow]:
    """All valid overlaps, best score first (stable for equal scores)."""
    overlaps = []
    for window in creator_windows:
        for block in invitee_blocks:
            overlap = overlap_window(window, block, min_duration=min_duration, bonus=bonus)
            if overlap is not None:
                overlaps.append(overlap)

    return sorted(overlaps, key=lambda w: w.score, reverse=True)


def _first_unused_day(windows: Sequence[TimeWindow], state: BatchState) -> TimeWindow | None:
    return next((w for w in windows if w.day_key not in state.used_time_slots), None)


def resolve_window(
    creator_windows: Sequence[TimeWindow],
    invitee_blocks: Sequence[AvailabilityBlock],
    state: BatchState,
    *,
    min_duration: timedelta = timedelta(hours=1),
    bonus: float = 0.2,
    collision_policy: SlotCollisionPolicy = SlotCollisionPolicy.STRICT,
) -> tuple[WindowChoice | None, BatchState]:
    """
    Pick the time window for one plan.

    Cascade, first match wins:
      1. best overlap on an unused day (only the top overlap under STRICT)
      2. invitee without any blocks: first creator window on an unused day
      3. highest-scored creator window, even if its day is already taken
      4. no creator windows: None
    """
    if not creator_windows:
        return None, state

    choice = None
    if invitee_blocks:
        overlaps = intersect_windows(
            creator_windows, invitee_blocks, min_duration=min_duration, bonus=bonus
        )
        if collision_policy is SlotCollisionPolicy.STRICT:
            overlaps = overlaps[:1]
        window = _first_unused_day(overlaps, state)
        if window is not None:
            choice = WindowChoice(window, WindowSource.OVERLAP)
    else:
        window = _first_unused_day(creator_windows, state)
        if window is not None:
            choice = WindowChoice(window, WindowSource.CREATOR_WINDOW)

    if choice is None:
        best = max(creator_windows, key=lambda w: w.score)
        choice = WindowChoice(best, WindowSource.LAST_RESORT)

    return choice, state.with_time_slot(choice.window.day_key)
