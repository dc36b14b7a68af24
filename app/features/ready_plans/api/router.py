"""
Ready plans routes.

Generation, local density and the active plan list. Every error leaves as
``{"error": message, ...}``; ReadyPlanError subclasses are rendered by
``ready_plan_error_handler``.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from app.auth.verify import get_current_user_id
from app.config import settings
from app.features.ready_plans.domain.errors import ReadyPlanError, ValidationError
from app.features.ready_plans.repository.plan_repository import ReadyPlanRepository
from app.features.ready_plans.services import plan_generation_service
from app.infrastructure.observability.logging import get_logger
from app.models.api.ready_plan_request import GeneratePlansRequest
from app.models.api.ready_plan_response import (
    GeneratePlansResponse,
    LocalDensityResponse,
    PlansListResponse,
    plan_to_response,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/ready-plans", tags=["ready-plans"])


async def ready_plan_error_handler(request: Request, exc: ReadyPlanError) -> JSONResponse:
    logger.info(
        "Ready plan request rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


def _internal_error(message: str, error: Exception, **context) -> JSONResponse:
    logger.error(message, error=str(error), error_type=type(error).__name__, **context)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(error)}
    )


def _require_city(city: str | None) -> str:
    if not city or not city.strip():
        raise ValidationError("City is required")
    return city.strip()


@router.post("/generate", response_model=GeneratePlansResponse, response_model_exclude_none=True)
async def generate_ready_plans(
    body: GeneratePlansRequest | None = None,
    user_id: str = Depends(get_current_user_id),
):
    """Generate up to five ready plans with local connections."""
    city = _require_city(body.city if body else None)

    try:
        result = await plan_generation_service.generate_plans(user_id, city)
    except ReadyPlanError:
        raise
    except Exception as e:
        return _internal_error("Plan generation failed", e, user_id=user_id, city=city)

    return GeneratePlansResponse(
        success=True,
        plans_generated=result.plans_generated,
        plans=[plan_to_response(plan) for plan in result.plans],
    )


@router.get(
    "/local-density", response_model=LocalDensityResponse, response_model_exclude_none=True
)
async def get_local_density(
    city: str | None = Query(default=None, description="City to check"),
    user_id: str = Depends(get_current_user_id),
):
    """How many of the user's connections are in a city, and whether that is enough."""
    city = _require_city(city)
    minimum = settings.PLAN_MIN_LOCAL_FRIENDS

    try:
        network = await plan_generation_service.load_local_network(user_id, city)
    except ReadyPlanError:
        raise
    except Exception as e:
        return _internal_error("Local density check failed", e, user_id=user_id, city=city)

    if not network.connection_ids:
        return LocalDensityResponse(
            local_friend_count=0, city=city, minimum_required=minimum, can_generate_plans=False
        )

    return LocalDensityResponse(
        local_friend_count=network.local_friend_count,
        city=city,
        minimum_required=minimum,
        can_generate_plans=network.local_friend_count >= minimum,
        recommended_count=settings.PLAN_RECOMMENDED_LOCAL_FRIENDS,
    )


@router.get("", response_model=PlansListResponse, response_model_exclude_none=True)
async def list_ready_plans(
    city: str | None = Query(default=None, description="Only plans in this city"),
    user_id: str = Depends(get_current_user_id),
):
    """Active plans the user created or was invited to, soonest first."""
    try:
        plans = await ReadyPlanRepository.list_active_plans(user_id, city.strip() if city else None)
    except ReadyPlanError:
        raise
    except Exception as e:
        return _internal_error("Listing ready plans failed", e, user_id=user_id)

    return PlansListResponse(plans=[plan_to_response(plan) for plan in plans])
