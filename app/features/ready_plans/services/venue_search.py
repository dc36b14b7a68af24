"""
Venue lookup for plan generation.

Wraps the Yelp client with an optional Redis cache. A failed search is never
fatal to a batch: it is logged and treated as "no venues found".
"""

import json

from app.config import settings
from app.features.ready_plans.domain.models import Venue
from app.infrastructure.observability.logging import get_logger
from app.services.redis_client import fast_redis
from app.services.venues.yelp_client import VenueSearchError, yelp_client

logger = get_logger(__name__)

CACHE_PREFIX = "ready_plans:venues"


def _cache_key(activity_type: str, city: str, limit: int) -> str:
    return f"{CACHE_PREFIX}:{activity_type}:{city.strip().lower()}:{limit}"


class VenueSearchService:
    async def find_venues(self, activity_type: str, city: str, limit: int | None = None) -> list[Venue]:
        limit = limit or settings.PLAN_VENUE_SEARCH_LIMIT
        key = _cache_key(activity_type, city, limit)

        if settings.redis_enabled():
            cached = await fast_redis.get(key)
            if cached:
                try:
                    venues = [Venue.from_dict(item) for item in json.loads(cached)]
                    logger.debug("Venue cache hit", activity_type=activity_type, city=city)
                    return venues
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning("Discarding unreadable venue cache entry", key=key, error=str(e))

        try:
            venues = await yelp_client.search_venues(activity_type, city, limit)
        except VenueSearchError as e:
            logger.warning(
                "Venue search failed, continuing without venues",
                activity_type=activity_type,
                city=city,
                status_code=e.status_code,
                error=str(e),
            )
            return []

        if venues and settings.redis_enabled():
            await fast_redis.set_with_ttl(
                key,
                json.dumps([v.to_dict() for v in venues]),
                ttl_s=settings.VENUE_CACHE_TTL_SECONDS,
            )

        return venues


venue_search_service = VenueSearchService()
