"""
Repository for the ready plans feature.

Reads connections, profiles, availability and plan history; inserts plans.
Read failures surface as DataFetchError, the insert as PersistError.
"""

from collections import defaultdict
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from psycopg.types.json import Jsonb

from app.db.helpers import DatabaseError, fetch_all, fetch_one, fetch_val, with_db_retry
from app.features.ready_plans.domain.errors import DataFetchError, PersistError
from app.features.ready_plans.domain.models import AvailabilityBlock, normalize_venue_name
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

ACTIVE_PLAN_STATUSES = ("pending", "committed")


class ReadyPlanRepository:
    """Thin SQL wrappers; every method is a single round-trip."""

    @staticmethod
    @with_db_retry(max_retries=2)
    async def fetch_connection_ids(user_id: str) -> list[str]:
        """Ids of the other side of every accepted connection, first-seen order."""
        try:
            rows = await fetch_all(
                """
                SELECT sender_id, receiver_id
                FROM user_connections
                WHERE (sender_id = %s OR receiver_id = %s)
                  AND status = 'accepted'
                """,
                (user_id, user_id),
            )
        except DatabaseError as e:
            raise DataFetchError(str(e)) from e

        other_ids = (
            str(row["receiver_id"]) if str(row["sender_id"]) == user_id else str(row["sender_id"])
            for row in rows
        )
        return list(dict.fromkeys(other_ids))

    @staticmethod
    @with_db_retry(max_retries=2)
    async def fetch_profile(user_id: str) -> dict[str, Any] | None:
        try:
            return await fetch_one(
                """
                SELECT id, location, interests, school, school_id, full_name
                FROM profiles
                WHERE id = %s
                """,
                (user_id,),
            )
        except DatabaseError as e:
            raise DataFetchError(str(e)) from e

    @staticmethod
    @with_db_retry(max_retries=2)
    async def fetch_profiles(user_ids: Sequence[str]) -> list[dict[str, Any]]:
        if not user_ids:
            return []
        try:
            return await fetch_all(
                """
                SELECT id, location, interests, school, school_id, full_name
                FROM profiles
                WHERE id = ANY(%s::uuid[])
                """,
                (list(user_ids),),
            )
        except DatabaseError as e:
            raise DataFetchError(str(e)) from e

    @staticmethod
    @with_db_retry(max_retries=2)
    async def fetch_availability_blocks(
        user_ids: Sequence[str],
    ) -> dict[str, list[AvailabilityBlock]]:
        """Future availability per user, ascending by start. Users without blocks are absent."""
        if not user_ids:
            return {}
        try:
            rows = await fetch_all(
                """
                SELECT user_id, start_time, end_time
                FROM user_availability_blocks
                WHERE user_id = ANY(%s::uuid[])
                  AND end_time >= NOW()
                ORDER BY start_time ASC
                """,
                (list(user_ids),),
            )
        except DatabaseError as e:
            raise DataFetchError(str(e)) from e

        blocks: dict[str, list[AvailabilityBlock]] = defaultdict(list)
        for row in rows:
            blocks[str(row["user_id"])].append(AvailabilityBlock.from_row(row))
        return dict(blocks)

    @staticmethod
    @with_db_retry(max_retries=2)
    async def count_recent_plans_with(user_id: str, invitee_id: str, days_back: int = 14) -> int:
        cutoff = datetime.now(UTC) - timedelta(days=days_back)
        try:
            count = await fetch_val(
                """
                SELECT COUNT(*)
                FROM ready_plans
                WHERE user_id = %s
                  AND invitee_ids @> ARRAY[%s]::uuid[]
                  AND created_at >= %s
                """,
                (user_id, invitee_id, cutoff),
            )
        except DatabaseError as e:
            raise DataFetchError(str(e)) from e
        return int(count or 0)

    @staticmethod
    @with_db_retry(max_retries=2)
    async def fetch_used_venue_names(user_id: str, city: str, days_back: int = 30) -> set[str]:
        """Normalized names of venues the user's recent plans in this city already used."""
        cutoff = datetime.now(UTC) - timedelta(days=days_back)
        try:
            rows = await fetch_all(
                """
                SELECT venue_options, selected_venue
                FROM ready_plans
                WHERE user_id = %s
                  AND city = %s
                  AND created_at >= %s
                """,
                (user_id, city, cutoff),
            )
        except DatabaseError as e:
            raise DataFetchError(str(e)) from e

        used: set[str] = set()
        for row in rows:
            selected = row.get("selected_venue") or {}
            if selected.get("name"):
                used.add(normalize_venue_name(selected["name"]))
            for venue in row.get("venue_options") or []:
                if venue and venue.get("name"):
                    used.add(normalize_venue_name(venue["name"]))
        return used

    @staticmethod
    async def insert_plan(plan: dict[str, Any]) -> dict[str, Any]:
        """Insert one plan and return the stored row."""
        params = (
            plan["user_id"],
            plan["city"],
            plan["time_window_start"],
            plan["time_window_end"],
            plan["proposed_start_time"],
            plan["activity_type"],
            plan["activity_description"],
            Jsonb(plan["venue_options"]),
            Jsonb(plan["selected_venue"]),
            plan["invitee_ids"],
            plan["commit_rule_min_acceptances"],
            plan["commit_rule_hours"],
            plan["commit_rule_expires_at"],
            plan["shared_interests"],
            plan["compatibility_score"],
            plan["status"],
        )
        try:
            row = await fetch_one(
                """
                INSERT INTO ready_plans (
                    user_id, city, time_window_start, time_window_end, proposed_start_time,
                    activity_type, activity_description, venue_options, selected_venue,
                    invitee_ids, commit_rule_min_acceptances, commit_rule_hours,
                    commit_rule_expires_at, shared_interests, compatibility_score, status
                ) VALUES (
                    %s, %s, %s, %s, %s,
                    %s, %s, %s, %s,
                    %s::uuid[], %s, %s,
                    %s, %s::text[], %s, %s
                )
                RETURNING *
                """,
                params,
            )
        except DatabaseError as e:
            raise PersistError(str(e)) from e

        if row is None:
            raise PersistError("Insert returned no row")
        return row

    @staticmethod
    async def list_active_plans(user_id: str, city: str | None = None) -> list[dict[str, Any]]:
        """Unexpired pending/committed plans the user owns or is invited to."""
        city_filter = "AND rp.city = %s" if city else ""
        params: tuple = (list(ACTIVE_PLAN_STATUSES), user_id, user_id)
        if city:
            params += (city,)

        try:
            return await fetch_all(
                f"""
                SELECT
                    rp.*,
                    COALESCE(
                        json_agg(
                            json_build_object(
                                'user_id', r.user_id,
                                'response', r.response,
                                'responded_at', r.responded_at
                            )
                        ) FILTER (WHERE r.user_id IS NOT NULL),
                        '[]'::json
                    ) AS ready_plan_responses
                FROM ready_plans rp
                LEFT JOIN ready_plan_responses r ON r.plan_id = rp.id
                WHERE rp.status = ANY(%s)
                  AND rp.commit_rule_expires_at >= NOW()
                  AND (rp.user_id = %s OR %s::uuid = ANY(rp.invitee_ids))
                  {city_filter}
                GROUP BY rp.id
                ORDER BY rp.proposed_start_time ASC
                """,
                params,
            )
        except DatabaseError as e:
            raise DataFetchError(str(e)) from e
