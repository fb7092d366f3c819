"""WeatherAPI client for current conditions."""

import httpx
from pydantic import ValidationError

from weather_agent.errors import ApiRequestFailedError, ResponseParseError
from weather_agent.models.providers import WeatherResponse
from weather_agent.utils.logging import get_logger

logger = get_logger(__name__)

WEATHER_ENDPOINT = "https://api.weatherapi.com/v1/current.json"


class WeatherClient:
    """Fetches current weather from api.weatherapi.com."""

    def __init__(
        self,
        endpoint: str = WEATHER_ENDPOINT,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize weather client.

        Args:
            endpoint: Current-conditions endpoint URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.endpoint = endpoint
        self.timeout = timeout
        self.transport = transport

    async def get_weather(self, api_key: str, location: str) -> WeatherResponse:
        """Fetch current weather for a location.

        Args:
            api_key: WeatherAPI key
            location: Location in "city,country" form (e.g. "London,GB")

        Returns:
            Parsed weather response

        Raises:
            ApiRequestFailedError: On transport errors or non-success status
            ResponseParseError: If the payload does not match the expected shape
        """
        logger.info(f"Fetching weather data for location: {location}")

        # A fresh client per call keeps concurrent lookups independent
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(self.endpoint, params={"key": api_key, "q": location})
            except httpx.HTTPError as e:
                logger.error(f"Weather request failed: {e}")
                raise ApiRequestFailedError(f"Failed to fetch weather data: {e}") from e

        if not response.is_success:
            logger.error(f"Failed to fetch weather data: {response.status_code}")
            raise ApiRequestFailedError(
                f"Failed to fetch weather data: {response.status_code}", status_code=response.status_code
            )

        try:
            weather = WeatherResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise ResponseParseError(f"weather payload: {e}") from e

        logger.debug(f"Weather data fetched successfully: {weather}")
        return weather
