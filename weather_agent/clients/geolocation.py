"""IPGeolocation client for local time lookups."""

import httpx
from pydantic import ValidationError

from weather_agent.errors import ApiRequestFailedError, ResponseParseError
from weather_agent.models.providers import TimeResponse
from weather_agent.utils.logging import get_logger

logger = get_logger(__name__)

GEO_LOCATION_ENDPOINT = "https://api.ipgeolocation.io/timezone"


class GeoLocationClient:
    """Fetches the current local time for a location from api.ipgeolocation.io."""

    def __init__(
        self,
        endpoint: str = GEO_LOCATION_ENDPOINT,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.transport = transport

    async def get_time(self, api_key: str, location: str) -> TimeResponse:
        """Fetch date and 12-hour time for a "city,country" location.

        Raises:
            ApiRequestFailedError: On transport errors or non-success status
            ResponseParseError: If the payload does not match the expected shape
        """
        logger.info(f"Fetching time data for location: {location}")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(self.endpoint, params={"apiKey": api_key, "location": location})
            except httpx.HTTPError as e:
                logger.error(f"Time request failed: {e}")
                raise ApiRequestFailedError(f"Failed to fetch time data: {e}") from e

        if not response.is_success:
            logger.error(f"Failed to fetch time data: {response.status_code}")
            raise ApiRequestFailedError(
                f"Failed to fetch time data: {response.status_code}", status_code=response.status_code
            )

        try:
            time_response = TimeResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ResponseParseError(f"time payload: {e}") from e

        logger.debug(f"Time data fetched successfully: {time_response}")
        return time_response
