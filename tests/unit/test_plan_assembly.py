from datetime import UTC, datetime, timedelta

from app.features.ready_plans.domain.models import (
    PlanDraft,
    RankedCandidate,
    SchedulingPolicy,
    TimeWindow,
    Venue,
    VenueChoice,
    WindowChoice,
    WindowSource,
)
from app.features.ready_plans.pipeline.scheduling import assemble_plan, commit_rule_expires_at

START = datetime(2030, 1, 10, 18, tzinfo=UTC)


def _draft() -> PlanDraft:
    window = TimeWindow(
        start=START,
        end=START + timedelta(hours=2),
        proposed_time=START + timedelta(minutes=30),
        score=1.5,
    )
    return PlanDraft(
        iteration=0,
        candidate=RankedCandidate(id="friend-1", similarity=0.72, full_name="Sam Lee"),
        window_choice=WindowChoice(window, WindowSource.OVERLAP),
        activity_type="coffee",
        shared_interests=("coffee", "jazz"),
    )


def test_commit_deadline_is_window_start_plus_24_hours():
    assert commit_rule_expires_at(START) == START + timedelta(hours=24)


def test_assembled_plan_fields():
    venue = Venue(name="Blue Bottle", address="1 Main St", rating=4.6, distance="0.3 mi")

    plan = assemble_plan(
        "user-1",
        "Oakland",
        _draft(),
        VenueChoice(venue, placeholder=False),
        "Coffee at Blue Bottle",
        SchedulingPolicy(),
    )

    assert plan["user_id"] == "user-1"
    assert plan["city"] == "Oakland"
    assert plan["time_window_start"] == START
    assert plan["proposed_start_time"] == START + timedelta(minutes=30)
    assert plan["activity_description"] == "Coffee at Blue Bottle"
    assert plan["invitee_ids"] == ["friend-1"]
    assert plan["selected_venue"] == {
        "name": "Blue Bottle",
        "address": "1 Main St",
        "rating": 4.6,
        "distance": "0.3 mi",
    }
    assert plan["venue_options"] == [plan["selected_venue"]]
    assert plan["commit_rule_hours"] == 24
    assert plan["commit_rule_min_acceptances"] == 2
    assert plan["commit_rule_expires_at"] == START + timedelta(hours=24)
    assert plan["shared_interests"] == ["coffee", "jazz"]
    assert plan["compatibility_score"] == 0.72
    assert plan["status"] == "pending"
