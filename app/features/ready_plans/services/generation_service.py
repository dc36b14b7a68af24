"""
Ready plan generation - orchestrates one batch for a user and city.

Phase 1 performs every read the batch needs (network, ranking, windows,
history, invitee availability). Phase 2 runs the sequential scheduling loop:
the pure scheduler decides who and when, then this service resolves the
venue, title and insert for each draft.
"""

import asyncio
from collections.abc import Sequence
from typing import Any

from app.config import settings
from app.features.ready_plans.domain.errors import PersistError, PreconditionError
from app.features.ready_plans.domain.models import (
    BatchState,
    GenerationResult,
    IterationFailed,
    IterationOutcome,
    LocalNetwork,
    NoVenue,
    PersistFailed,
    PlanDraft,
    SchedulingPolicy,
    Selected,
)
from app.features.ready_plans.pipeline.ranking import ranking_service
from app.features.ready_plans.pipeline.scheduling import (
    assemble_plan,
    choose_venue,
    iteration_count,
    select_next_plan,
)
from app.features.ready_plans.repository.plan_repository import ReadyPlanRepository
from app.infrastructure.observability.logging import get_logger

from .smart_windows import generate_smart_time_windows
from .titles import TitleContext, generate_plan_title
from .venue_search import venue_search_service

logger = get_logger(__name__)


def filter_local_connections(profiles: Sequence[dict[str, Any]], city: str) -> list[str]:
    """Ids of profiles whose free-text location contains the city, case-insensitively."""
    needle = city.lower()
    return [
        str(p["id"]) for p in profiles if p.get("location") and needle in p["location"].lower()
    ]


class PlanGenerationService:
    def __init__(self, policy: SchedulingPolicy | None = None):
        self.policy = policy or SchedulingPolicy.from_settings(settings)

    async def load_local_network(self, user_id: str, city: str) -> LocalNetwork:
        connection_ids = await ReadyPlanRepository.fetch_connection_ids(user_id)
        if not connection_ids:
            return LocalNetwork(connection_ids=[], local_connection_ids=[])

        profiles = await ReadyPlanRepository.fetch_profiles(connection_ids)
        return LocalNetwork(
            connection_ids=connection_ids,
            local_connection_ids=filter_local_connections(profiles, city),
        )

    async def generate_plans(self, user_id: str, city: str) -> GenerationResult:
        """
        Generate up to one batch of plans for a user in a city.

        Raises:
            PreconditionError: No connections, too few local friends, or nothing ranked
            DataFetchError: A read failed before scheduling started
        """
        min_local = settings.PLAN_MIN_LOCAL_FRIENDS

        network = await self.load_local_network(user_id, city)
        if not network.connection_ids:
            raise PreconditionError(
                "No connections found", local_friend_count=0, minimum_required=min_local
            )
        if network.local_friend_count < min_local:
            raise PreconditionError(
                "Insufficient local network density",
                local_friend_count=network.local_friend_count,
                minimum_required=min_local,
            )

        user_profile = await ReadyPlanRepository.fetch_profile(user_id)
        candidates = await ranking_service.rank_connections(
            user_id, network.local_connection_ids, user_profile
        )
        if not candidates:
            raise PreconditionError(
                "No compatible connections found", local_friend_count=network.local_friend_count
            )

        # Phase 1: read-only fan-out
        used_venues = await ReadyPlanRepository.fetch_used_venue_names(
            user_id, city, settings.PLAN_VENUE_HISTORY_DAYS
        )
        creator_blocks = await ReadyPlanRepository.fetch_availability_blocks([user_id])
        creator_windows = generate_smart_time_windows(
            (user_profile or {}).get("school"), creator_blocks.get(user_id, [])
        )
        counts = await asyncio.gather(
            *(
                ReadyPlanRepository.count_recent_plans_with(
                    user_id, c.id, settings.PLAN_RECENT_WINDOW_DAYS
                )
                for c in candidates
            )
        )
        recent_plan_counts = {c.id: n for c, n in zip(candidates, counts, strict=True)}
        invitee_blocks = await ReadyPlanRepository.fetch_availability_blocks(
            [c.id for c in candidates]
        )

        logger.info(
            "Plan generation started",
            user_id=user_id,
            city=city,
            local_friend_count=network.local_friend_count,
            candidates=len(candidates),
            creator_windows=len(creator_windows),
            used_venues=len(used_venues),
        )

        # Phase 2: sequential scheduling loop
        state = BatchState(used_venue_names=frozenset(used_venues))
        plans: list[dict[str, Any]] = []
        outcomes: list[IterationOutcome] = []

        for i in range(iteration_count(creator_windows, self.policy)):
            step, state = select_next_plan(
                state,
                candidates,
                creator_windows,
                recent_plan_counts,
                invitee_blocks,
                i,
                self.policy,
            )
            if isinstance(step, PlanDraft):
                try:
                    outcome, state = await self._complete_plan(user_id, city, step, state)
                except Exception as e:
                    # Earlier plans are already stored; keep going
                    outcome = IterationFailed(step.iteration, step.candidate.id, str(e))
            else:
                outcome = step

            outcomes.append(outcome)
            self._log_outcome(user_id, outcome)
            if isinstance(outcome, Selected):
                plans.append(outcome.plan)

        result = GenerationResult(plans=plans, outcomes=outcomes)
        logger.info(
            "Plan generation completed",
            user_id=user_id,
            city=city,
            iterations=len(outcomes),
            plans_generated=result.plans_generated,
            outcomes=[type(o).__name__ for o in outcomes],
        )
        return result

    async def _complete_plan(
        self, user_id: str, city: str, draft: PlanDraft, state: BatchState
    ) -> tuple[IterationOutcome, BatchState]:
        venues = await venue_search_service.find_venues(draft.activity_type, city)
        venue_choice, state = choose_venue(
            venues,
            state,
            draft.activity_type,
            city,
            allow_placeholder=self.policy.allow_placeholder_venues,
        )
        if venue_choice is None:
            return NoVenue(draft.iteration, draft.candidate.id, draft.activity_type), state

        title = generate_plan_title(
            TitleContext(
                activity_type=draft.activity_type,
                shared_interests=list(draft.shared_interests),
                venue_name=venue_choice.venue.name,
                invitee_name=draft.candidate.full_name,
                invitee_school=draft.candidate.school,
                city=city,
            )
        )
        plan = assemble_plan(user_id, city, draft, venue_choice, title, self.policy)

        try:
            row = await ReadyPlanRepository.insert_plan(plan)
        except PersistError as e:
            return PersistFailed(draft.iteration, draft.candidate.id, str(e)), state

        logger.info(
            "Plan created",
            user_id=user_id,
            iteration=draft.iteration,
            outcome="Selected",
            invitee_id=draft.candidate.id,
            plan_id=str(row.get("id")),
            activity_type=draft.activity_type,
            window_source=str(draft.window_choice.source),
            venue_placeholder=venue_choice.placeholder,
        )
        return Selected(draft.iteration, row), state

    def _log_outcome(self, user_id: str, outcome: IterationOutcome) -> None:
        # Selected is logged with window and venue detail in _complete_plan
        if isinstance(outcome, PersistFailed):
            logger.error(
                "Plan insert failed, continuing batch",
                user_id=user_id,
                iteration=outcome.iteration,
                outcome="PersistFailed",
                invitee_id=outcome.invitee_id,
                error=outcome.error,
            )
        elif isinstance(outcome, IterationFailed):
            logger.error(
                "Plan iteration failed, continuing batch",
                user_id=user_id,
                iteration=outcome.iteration,
                outcome="IterationFailed",
                invitee_id=outcome.invitee_id,
                error=outcome.error,
            )
        elif not isinstance(outcome, Selected):
            logger.info(
                "Plan iteration skipped",
                user_id=user_id,
                iteration=outcome.iteration,
                outcome=type(outcome).__name__,
                invitee_id=getattr(outcome, "invitee_id", None),
            )


plan_generation_service = PlanGenerationService()
