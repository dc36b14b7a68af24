# app/models/api/ready_plan_request.py
"""
Ready plan API request models.
Used by routes for input validation.
"""

from pydantic import BaseModel, Field


class GeneratePlansRequest(BaseModel):
    """Request for generating a batch of ready plans."""

    # Optional here so a missing city is reported as {"error": "City is required"}
    city: str | None = Field(default=None, description="City to generate plans in")
