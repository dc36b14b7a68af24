"""
Compatibility ranking - orders a user's local connections for plan generation.
"""

from __future__ import annotations

import asyncio
import json
import math
from collections.abc import Sequence
from typing import Any

from app.features.ready_plans.domain.models import RankedCandidate
from app.infrastructure.observability.logging import get_logger

from .repository import DNA_SOURCES, RankingRepository

logger = get_logger(__name__)


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    if len(vec_a) != len(vec_b) or not vec_a:
        return 0.0

    dot = sum(a * b for a, b in zip(vec_a, vec_b, strict=True))
    norm_a = math.sqrt(sum(a * a for a in vec_a))
    norm_b = math.sqrt(sum(b * b for b in vec_b))
    denominator = norm_a * norm_b
    return 0.0 if denominator == 0 else dot / denominator


def parse_vector(vector: Any) -> list[float]:
    """
    Vectors arrive as lists or as JSON/pgvector text like '[0.1,0.2]'.
    Anything unparseable, including non-numeric elements, reads as no vector.
    """
    if isinstance(vector, str):
        try:
            vector = json.loads(vector)
        except ValueError:
            return []
    if not isinstance(vector, list | tuple):
        return []
    try:
        return [float(v) for v in vector]
    except (TypeError, ValueError):
        return []


class RankingService:
    SAME_SCHOOL_BONUS = 0.1

    async def rank_connections(
        self,
        user_id: str,
        connection_ids: Sequence[str],
        user_profile: dict[str, Any] | None,
    ) -> list[RankedCandidate]:
        """
        Rank connections by compatibility with the user, highest first.

        Args:
            user_id: Plan creator
            connection_ids: Local connections to rank
            user_profile: Creator's profile row (interests, school); may be None

        Returns:
            Ranked candidates; empty if none of the ids has a profile
        """
        profiles = await RankingRepository.fetch_candidate_profiles(connection_ids)
        if not profiles:
            return []

        all_ids = [user_id, *(str(p["id"]) for p in profiles)]
        vector_maps = await asyncio.gather(
            *(
                RankingRepository.fetch_dna_vectors(table, column, all_ids)
                for table, column in DNA_SOURCES
            )
        )

        user_profile = user_profile or {}
        user_interests = list(user_profile.get("interests") or [])
        user_school = user_profile.get("school")

        ranked = []
        for profile in profiles:
            candidate_id = str(profile["id"])
            candidate_interests = list(profile.get("interests") or [])
            similarity, shared = self._compatibility(
                user_id, candidate_id, user_interests, candidate_interests, vector_maps
            )
            if user_school and profile.get("school") == user_school:
                similarity += self.SAME_SCHOOL_BONUS

            ranked.append(
                RankedCandidate(
                    id=candidate_id,
                    similarity=similarity,
                    shared_interests=shared,
                    school=profile.get("school"),
                    location=profile.get("location"),
                    full_name=profile.get("full_name"),
                )
            )

        ranked.sort(key=lambda c: c.similarity, reverse=True)

        logger.info(
            "Connections ranked",
            user_id=user_id,
            requested=len(connection_ids),
            ranked=len(ranked),
            top_similarity=round(ranked[0].similarity, 3) if ranked else None,
        )
        return ranked

    def _compatibility(
        self,
        user_id: str,
        candidate_id: str,
        user_interests: list[str],
        candidate_interests: list[str],
        vector_maps: Sequence[dict[str, Any]],
    ) -> tuple[float, list[str]]:
        shared = [i for i in user_interests if i in candidate_interests]

        similarity = 0.0
        # First source where both sides have a vector decides
        for vectors in vector_maps:
            if user_id in vectors and candidate_id in vectors:
                similarity = cosine_similarity(
                    parse_vector(vectors[user_id]), parse_vector(vectors[candidate_id])
                )
                break

        if similarity == 0 and shared:
            total = len(set(user_interests) | set(candidate_interests))
            similarity = len(shared) / max(total, 1)

        return similarity, shared


ranking_service = RankingService()
