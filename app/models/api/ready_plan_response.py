# app/models/api/ready_plan_response.py
"""
Ready plan API response models.
Used by routes for output formatting.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VenueResponse(BaseModel):
    """A venue attached to a plan."""

    name: str = Field(..., description="Venue name")
    address: str = Field(..., description="Street address, or the city for placeholders")
    rating: float = Field(..., description="Provider rating 0-5")
    distance: str | None = Field(None, description="Distance like '0.8 mi'")
    yelp_url: str | None = Field(None, description="Provider listing URL")
    price: str | None = Field(None, description="Price tier like '$$'")


class PlanResponseEntry(BaseModel):
    """An invitee's response to a plan."""

    user_id: UUID = Field(..., description="Responding user")
    response: str = Field(..., description="Response value")
    responded_at: datetime | None = Field(None, description="When the response was recorded")


class ReadyPlanResponse(BaseModel):
    """A stored ready plan."""

    model_config = ConfigDict(extra="ignore")

    id: UUID = Field(..., description="Plan ID")
    user_id: UUID = Field(..., description="Plan creator")
    city: str = Field(..., description="City the plan is in")
    time_window_start: datetime = Field(..., description="Start of the meeting window")
    time_window_end: datetime = Field(..., description="End of the meeting window")
    proposed_start_time: datetime = Field(..., description="Proposed meeting time")
    activity_type: str = Field(..., description="Activity category")
    activity_description: str = Field(..., description="Generated plan title")
    venue_options: list[VenueResponse] = Field(default_factory=list, description="Venue options")
    selected_venue: VenueResponse | None = Field(None, description="Chosen venue")
    invitee_ids: list[UUID] = Field(default_factory=list, description="Invited users")
    commit_rule_min_acceptances: int = Field(..., description="Acceptances needed to commit")
    commit_rule_hours: int = Field(..., description="Hours the commit rule stays open")
    commit_rule_expires_at: datetime = Field(..., description="Commit deadline")
    shared_interests: list[str] = Field(default_factory=list, description="Shared interests")
    compatibility_score: float | None = Field(None, description="Creator/invitee compatibility")
    status: str = Field(..., description="Plan status")
    created_at: datetime | None = Field(None, description="When the plan was created")
    ready_plan_responses: list[PlanResponseEntry] | None = Field(
        None, description="Invitee responses (list endpoint only)"
    )


class GeneratePlansResponse(BaseModel):
    """Response for a generation batch."""

    success: bool = Field(default=True, description="Batch completed")
    plans_generated: int = Field(..., description="Number of plans created (0-5)")
    plans: list[ReadyPlanResponse] = Field(..., description="Created plans")


class LocalDensityResponse(BaseModel):
    """Local network density for a city."""

    model_config = ConfigDict(extra="ignore")

    local_friend_count: int = Field(..., description="Connections located in the city")
    city: str = Field(..., description="City checked")
    minimum_required: int = Field(..., description="Local friends required to generate")
    can_generate_plans: bool = Field(..., description="Whether generation would pass density")
    recommended_count: int | None = Field(None, description="Recommended local friends")


class PlansListResponse(BaseModel):
    """Response for listing active plans."""

    plans: list[ReadyPlanResponse] = Field(..., description="Active plans")


def plan_to_response(plan: dict[str, Any]) -> ReadyPlanResponse:
    return ReadyPlanResponse.model_validate(plan)
