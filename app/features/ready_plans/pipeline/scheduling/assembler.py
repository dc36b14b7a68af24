"""
Plan assembly: turns a scheduled draft plus its venue and title into the
record inserted into ``ready_plans``.
"""

from datetime import datetime, timedelta
from typing import Any

from app.features.ready_plans.domain.models import PlanDraft, SchedulingPolicy, VenueChoice

PLAN_STATUS_PENDING = "pending"


def commit_rule_expires_at(window_start: datetime, commit_rule_hours: int = 24) -> datetime:
    return window_start + timedelta(hours=commit_rule_hours)


def assemble_plan(
    user_id: str,
    city: str,
    draft: PlanDraft,
    venue_choice: VenueChoice,
    title: str,
    policy: SchedulingPolicy,
) -> dict[str, Any]:
    window = draft.window_choice.window
    venue = venue_choice.venue.to_dict()

    # commit_rule_min_acceptances is stored for downstream consumers; nothing here enforces it
    return {
        "user_id": user_id,
        "city": city,
        "time_window_start": window.start,
        "time_window_end": window.end,
        "proposed_start_time": window.proposed_time,
        "activity_type": draft.activity_type,
        "activity_description": title,
        "venue_options": [venue],
        "selected_venue": venue,
        "invitee_ids": [draft.candidate.id],
        "commit_rule_min_acceptances": policy.commit_min_acceptances,
        "commit_rule_hours": policy.commit_rule_hours,
        "commit_rule_expires_at": commit_rule_expires_at(window.start, policy.commit_rule_hours),
        "shared_interests": list(draft.shared_interests),
        "compatibility_score": draft.candidate.similarity,
        "status": PLAN_STATUS_PENDING,
    }
