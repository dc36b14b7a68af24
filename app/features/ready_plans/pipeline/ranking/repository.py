"""
Repository helpers for compatibility ranking.
"""

from collections.abc import Sequence
from typing import Any

from app.db.helpers import DatabaseError, fetch_all, with_db_retry
from app.features.ready_plans.domain.errors import DataFetchError
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# (table, vector column), most accurate first
DNA_SOURCES = (
    ("digital_dna_v2", "composite_vector"),
    ("digital_dna_v1", "interest_vector"),
)


class RankingRepository:
    """Batched reads of candidate profiles and DNA vectors."""

    @staticmethod
    @with_db_retry(max_retries=2)
    async def fetch_candidate_profiles(user_ids: Sequence[str]) -> list[dict[str, Any]]:
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
    async def fetch_dna_vectors(table: str, column: str, user_ids: Sequence[str]) -> dict[str, Any]:
        """Raw vector per user id for one DNA source; users without a row are absent."""
        if (table, column) not in DNA_SOURCES:
            raise ValueError(f"Unknown DNA source: {table}.{column}")
        if not user_ids:
            return {}

        try:
            rows = await fetch_all(
                f"SELECT user_id, {column} AS vector FROM {table} WHERE user_id = ANY(%s::uuid[])",
                (list(user_ids),),
            )
        except DatabaseError as e:
            raise DataFetchError(str(e)) from e

        vectors = {str(row["user_id"]): row["vector"] for row in rows if row["vector"] is not None}
        logger.debug(
            "Fetched DNA vectors", table=table, requested=len(user_ids), found=len(vectors)
        )
        return vectors
