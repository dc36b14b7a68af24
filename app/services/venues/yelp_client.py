"""
Yelp Fusion business search client.
Maps plan activity types to search terms and returns venues the plan generator can use.
"""

import asyncio

import httpx

from app.config import settings
from app.features.ready_plans.domain.models import Venue
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Request timeouts and retry configuration
REQUEST_TIMEOUT = 10  # seconds
MAX_RETRIES = 3
BACKOFF_FACTOR = 1
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

METERS_PER_MILE = 1609.34

ACTIVITY_SEARCH_TERMS = {
    "coffee": "coffee",
    "walk": "parks",
    "casual_food": "restaurants",
    "museum": "museums",
    "concert": "music venues",
    "art": "art galleries",
    "sports": "sports bars",
    "fitness": "gyms",
    "bookstore": "bookstores",
    "library": "libraries",
}


class VenueSearchError(Exception):
    """Raised when the Yelp API fails or returns an unusable response."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def search_term_for(activity_type: str) -> str:
    return ACTIVITY_SEARCH_TERMS.get(activity_type, activity_type)


def format_distance(meters: float | None) -> str | None:
    if meters is None:
        return None
    return f"{round(meters / METERS_PER_MILE, 1)} mi"


def format_address(location: dict) -> str:
    display = location.get("display_address") or []
    if display:
        return ", ".join(display)
    if location.get("address1"):
        return location["address1"]
    return f"{location.get('city', '')}, {location.get('state', '')}"


def business_to_venue(business: dict) -> Venue:
    return Venue(
        name=business["name"],
        address=format_address(business.get("location") or {}),
        rating=float(business.get("rating") or 0.0),
        distance=format_distance(business.get("distance")),
        yelp_url=business.get("url"),
        price=business.get("price"),
    )


class YelpVenueClient:
    """
    Async client for Yelp business search.

    Retries rate-limit and server errors with backoff; everything else is
    surfaced as VenueSearchError.
    """

    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self.api_key = api_key if api_key is not None else settings.YELP_API_KEY
        self.base_url = (base_url or settings.YELP_API_BASE_URL).rstrip("/")
        self._client = self._create_client()

    def _create_client(self) -> httpx.AsyncClient:
        timeout = httpx.Timeout(REQUEST_TIMEOUT)
        limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
        return httpx.AsyncClient(timeout=timeout, limits=limits)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def _request_with_retry(self, method: str, url: str, **kwargs) -> httpx.Response:
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = await self._client.request(method, url, **kwargs)
                if response.status_code in RETRY_STATUS_CODES and attempt < MAX_RETRIES:
                    backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                    logger.debug(
                        "Yelp API retrying request",
                        attempt=attempt,
                        status_code=response.status_code,
                        backoff_seconds=backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                return response
            except httpx.RequestError as e:
                if attempt >= MAX_RETRIES:
                    raise VenueSearchError(f"Yelp request failed: {e}") from e
                backoff = BACKOFF_FACTOR * (2 ** (attempt - 1))
                logger.debug(
                    "Yelp API request error, retrying",
                    attempt=attempt,
                    error=str(e),
                    backoff_seconds=backoff,
                )
                await asyncio.sleep(backoff)
        raise VenueSearchError("Yelp API retry loop exhausted")

    def _handle_api_response(self, response: httpx.Response) -> dict:
        if response.is_success:
            try:
                return response.json() if response.text else {}
            except ValueError as e:
                logger.error("Failed to parse Yelp response", error=str(e))
                raise VenueSearchError(f"Invalid response format: {e}") from e

        logger.error(
            "Yelp API search failed",
            status_code=response.status_code,
            response_text=response.text[:200] if response.text else "",
        )
        raise VenueSearchError(
            f"Yelp API error (HTTP {response.status_code})", status_code=response.status_code
        )

    async def search_venues(self, activity_type: str, city: str, limit: int = 10) -> list[Venue]:
        """
        Search well-rated venues for an activity in a city.

        Args:
            activity_type: Plan activity (coffee, walk, casual_food, ...)
            city: Free-text location passed to Yelp
            limit: Maximum number of businesses requested

        Returns:
            Venues rated at least YELP_MIN_RATING, in Yelp's order. Empty when
            no API key is configured.

        Raises:
            VenueSearchError: If the API call fails
        """
        if not self.api_key:
            logger.warning("Yelp API key not configured, skipping venue search")
            return []

        response = await self._request_with_retry(
            "GET",
            f"{self.base_url}/businesses/search",
            headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
            params={
                "term": search_term_for(activity_type),
                "location": city,
                "limit": limit,
                "sort_by": "rating",
            },
        )
        data = self._handle_api_response(response)
        if not isinstance(data, dict):
            raise VenueSearchError("Invalid response format: expected a JSON object")

        businesses = data.get("businesses") or []
        venues = []
        for business in businesses:
            try:
                venue = business_to_venue(business)
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed Yelp business", error=str(e))
                continue
            if venue.rating >= settings.YELP_MIN_RATING:
                venues.append(venue)

        logger.info(
            "Yelp venue search completed",
            activity_type=activity_type,
            city=city,
            returned=len(businesses),
            kept=len(venues),
        )
        return venues


yelp_client = YelpVenueClient()
