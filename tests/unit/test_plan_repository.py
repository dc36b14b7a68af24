from datetime import UTC, datetime
from unittest.mock import AsyncMock

import psycopg
import pytest

from app.db.helpers import DatabaseError, with_db_retry
from app.features.ready_plans.domain.errors import DataFetchError, PersistError
from app.features.ready_plans.repository.plan_repository import ReadyPlanRepository

MODULE = "app.features.ready_plans.repository.plan_repository"


@pytest.mark.asyncio
async def test_connection_ids_are_the_other_side_deduped(monkeypatch):
    rows = [
        {"sender_id": "me", "receiver_id": "a"},
        {"sender_id": "b", "receiver_id": "me"},
        {"sender_id": "a", "receiver_id": "me"},
    ]
    monkeypatch.setattr(f"{MODULE}.fetch_all", AsyncMock(return_value=rows))

    assert await ReadyPlanRepository.fetch_connection_ids("me") == ["a", "b"]


@pytest.mark.asyncio
async def test_read_failure_becomes_data_fetch_error(monkeypatch):
    monkeypatch.setattr(
        f"{MODULE}.fetch_all",
        AsyncMock(side_effect=DatabaseError("Query failed: syntax", operation="fetch_all")),
    )

    with pytest.raises(DataFetchError):
        await ReadyPlanRepository.fetch_profiles(["a"])


@pytest.mark.asyncio
async def test_availability_blocks_grouped_by_user(monkeypatch):
    t = datetime(2030, 1, 7, 18, tzinfo=UTC)
    rows = [
        {"user_id": "a", "start_time": t, "end_time": t.replace(hour=20)},
        {"user_id": "b", "start_time": t, "end_time": t.replace(hour=19)},
        {"user_id": "a", "start_time": t.replace(hour=21), "end_time": t.replace(hour=22)},
    ]
    monkeypatch.setattr(f"{MODULE}.fetch_all", AsyncMock(return_value=rows))

    blocks = await ReadyPlanRepository.fetch_availability_blocks(["a", "b", "c"])

    assert set(blocks) == {"a", "b"}
    assert [b.start.hour for b in blocks["a"]] == [18, 21]


@pytest.mark.asyncio
async def test_used_venue_names_are_normalized(monkeypatch):
    rows = [
        {
            "selected_venue": {"name": "Blue Bottle Coffee "},
            "venue_options": [{"name": "Blue Bottle Coffee "}, {"name": "PHILZ"}],
        },
        {"selected_venue": None, "venue_options": None},
    ]
    monkeypatch.setattr(f"{MODULE}.fetch_all", AsyncMock(return_value=rows))

    used = await ReadyPlanRepository.fetch_used_venue_names("me", "Oakland")

    assert used == {"blue bottle coffee", "philz"}


@pytest.mark.asyncio
async def test_insert_failure_becomes_persist_error(monkeypatch):
    monkeypatch.setattr(
        f"{MODULE}.fetch_one", AsyncMock(side_effect=DatabaseError("Query failed: constraint"))
    )
    plan = {
        key: None
        for key in (
            "user_id", "city", "time_window_start", "time_window_end", "proposed_start_time",
            "activity_type", "activity_description", "invitee_ids",
            "commit_rule_min_acceptances", "commit_rule_hours", "commit_rule_expires_at",
            "shared_interests", "compatibility_score", "status",
        )
    }
    plan.update(venue_options=[], selected_venue={})

    with pytest.raises(PersistError):
        await ReadyPlanRepository.insert_plan(plan)


def _transient_error() -> DataFetchError:
    db_error = DatabaseError("Query failed: connection lost")
    db_error.__cause__ = psycopg.OperationalError("connection lost")
    error = DataFetchError(str(db_error))
    error.__cause__ = db_error
    return error


@pytest.mark.asyncio
async def test_db_retry_retries_transient_failures_only():
    calls = {"transient": 0, "permanent": 0}

    @with_db_retry(max_retries=2, base_delay=0)
    async def flaky():
        calls["transient"] += 1
        if calls["transient"] < 3:
            raise _transient_error()
        return "ok"

    @with_db_retry(max_retries=2, base_delay=0)
    async def broken():
        calls["permanent"] += 1
        raise DataFetchError("bad query")

    assert await flaky() == "ok"
    with pytest.raises(DataFetchError):
        await broken()
    assert calls == {"transient": 3, "permanent": 1}
