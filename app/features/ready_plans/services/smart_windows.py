"""
Smart time windows for the plan creator.

Availability blocks are used directly when the creator has any; otherwise a
default student-friendly weekly pattern is generated for the next 10 days.
All times are UTC.
"""

from collections.abc import Sequence
from datetime import UTC, datetime, time, timedelta

from app.features.ready_plans.domain.models import AvailabilityBlock, TimeWindow
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

THURSDAY, FRIDAY, SATURDAY, SUNDAY = 3, 4, 5, 6
FINALS_MONTHS = {5, 12}
DEFAULT_HORIZON_DAYS = 10


def score_block_start(start: datetime) -> float:
    weekday, hour = start.weekday(), start.hour
    if weekday in (THURSDAY, FRIDAY) and hour >= 17:
        return 1.3
    if weekday == SATURDAY and 12 <= hour < 17:
        return 1.4
    if weekday in (SATURDAY, SUNDAY) and hour >= 17:
        return 1.2
    return 1.0


def windows_from_blocks(blocks: Sequence[AvailabilityBlock], now: datetime) -> list[TimeWindow]:
    windows = [
        TimeWindow(
            start=block.start,
            end=block.end,
            proposed_time=block.start + (block.end - block.start) / 2,
            score=score_block_start(block.start.astimezone(UTC)),
        )
        for block in blocks
        if block.end >= now
    ]
    return sorted(windows, key=lambda w: w.score, reverse=True)


def _window_on(day: datetime, start: time, end: time, proposed: time, score: float) -> TimeWindow:
    on_day = day.date()
    return TimeWindow(
        start=datetime.combine(on_day, start, tzinfo=UTC),
        end=datetime.combine(on_day, end, tzinfo=UTC),
        proposed_time=datetime.combine(on_day, proposed, tzinfo=UTC),
        score=score,
    )


def default_windows(now: datetime, horizon_days: int = DEFAULT_HORIZON_DAYS) -> list[TimeWindow]:
    """Weekday evenings and weekend afternoons/evenings; weekdays are skipped in finals months."""
    finals = now.month in FINALS_MONTHS
    windows = []

    for offset in range(horizon_days):
        day = now + timedelta(days=offset)
        weekday = day.weekday()
        weekend = weekday in (SATURDAY, SUNDAY)

        if not weekend:
            if finals:
                continue
            windows.append(
                _window_on(
                    day, time(18), time(20), time(18, 30),
                    1.3 if weekday in (THURSDAY, FRIDAY) else 1.0,
                )
            )
            continue

        windows.append(
            _window_on(day, time(14), time(16), time(14, 30), 1.4 if weekday == SATURDAY else 1.0)
        )
        windows.append(
            _window_on(day, time(18), time(20), time(18, 30), 1.2 if weekday == SATURDAY else 1.0)
        )

    upcoming = [w for w in windows if w.end > now]
    return sorted(upcoming, key=lambda w: w.score, reverse=True)


def generate_smart_time_windows(
    school: str | None,
    availability_blocks: Sequence[AvailabilityBlock] | None,
    now: datetime | None = None,
) -> list[TimeWindow]:
    """
    Scored creator windows, best first.

    Args:
        school: Creator's school, logged for schedule diagnostics
        availability_blocks: Creator's future availability, ascending
        now: Reference instant (defaults to current UTC time)
    """
    now = now or datetime.now(UTC)

    if availability_blocks:
        windows = windows_from_blocks(availability_blocks, now)
        source = "availability_blocks"
    else:
        windows = default_windows(now)
        source = "default_pattern"

    logger.debug("Generated smart time windows", source=source, school=school, count=len(windows))
    return windows
