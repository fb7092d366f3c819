"""Current weather tool."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from weather_agent.clients.weather import WeatherClient
from weather_agent.config import WEATHER_API_KEY_VAR, get_credential
from weather_agent.tools.base import ToolDefinition


class GetWeatherInput(BaseModel):
    """Input schema for the weather tool."""

    model_config = ConfigDict(strict=True)

    city: str = Field(..., description='City name in English, Latin script (e.g., "Seattle").')
    country: str = Field(..., description='ISO-3166-1 alpha-2 country code, e.g., "US".')
    unit: Literal["C", "F"] = Field(..., description="Temperature unit (C for Celsius, F for Fahrenheit)")


def create_weather_tool(weather_client: WeatherClient) -> ToolDefinition:
    async def get_weather_handler(params: GetWeatherInput) -> dict[str, Any]:
        api_key = get_credential(WEATHER_API_KEY_VAR)
        weather = await weather_client.get_weather(api_key, f"{params.city},{params.country}")

        current = weather.current
        temperature = current.temp_f if params.unit == "F" else current.temp_c

        return {
            "temperature": temperature,
            "condition": current.condition.text,
            "humidity": current.humidity,
        }

    return ToolDefinition(
        name="get_weather",
        description="Get the current weather for a location",
        input_schema_class=GetWeatherInput,
        handler=get_weather_handler,
    )
