"""
Ready plan services: batch orchestration, smart windows, titles and venue search.
"""

from .generation_service import PlanGenerationService, plan_generation_service

__all__ = ["PlanGenerationService", "plan_generation_service"]
