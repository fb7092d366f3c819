"""Current local time tool."""

from pydantic import BaseModel, ConfigDict, Field

from weather_agent.clients.geolocation import GeoLocationClient
from weather_agent.config import GEOLOCATION_API_KEY_VAR, get_credential
from weather_agent.tools.base import ToolDefinition


class GetCurrentTimeInput(BaseModel):
    """Input schema for the current time tool."""

    model_config = ConfigDict(strict=True)

    city: str = Field(..., description='City name in English, Latin script (e.g., "Seattle").')
    country: str = Field(..., description='ISO-3166-1 alpha-2 country code, e.g., "US".')


def create_current_time_tool(geolocation_client: GeoLocationClient) -> ToolDefinition:
    async def get_current_time_handler(params: GetCurrentTimeInput) -> dict[str, str]:
        api_key = get_credential(GEOLOCATION_API_KEY_VAR)
        time_response = await geolocation_client.get_time(api_key, f"{params.city},{params.country}")
        return {"time": f"{time_response.date} {time_response.time_12}"}

    return ToolDefinition(
        name="get_current_time",
        description="Get the current time for a location",
        input_schema_class=GetCurrentTimeInput,
        handler=get_current_time_handler,
    )
