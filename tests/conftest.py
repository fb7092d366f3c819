"""Shared fixtures and fakes for the weather agent tests."""

from collections.abc import Iterable

import pytest
from pydantic import BaseModel, ConfigDict

from weather_agent.models.conversation import Conversation
from weather_agent.models.providers import TimeResponse, WeatherResponse
from weather_agent.tools.base import ToolDefinition
from weather_agent.tools.current_time import create_current_time_tool
from weather_agent.tools.registry import ToolsRegistry
from weather_agent.tools.weather import create_weather_tool


class ScriptedModel:
    """Model client that replays canned replies and records what it was sent."""

    def __init__(self, replies: Iterable = ()):
        self.replies = list(replies)
        self.calls: list[dict] = []

    async def send(self, system_prompt, tools, transcript):
        self.calls.append({"system_prompt": system_prompt, "tools": tuple(tools), "transcript": list(transcript)})
        if not self.replies:
            raise AssertionError("Model called more times than scripted")

        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeWeatherClient:
    """Stands in for WeatherClient; records lookups."""

    def __init__(self, response: WeatherResponse | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def get_weather(self, api_key: str, location: str) -> WeatherResponse:
        self.calls.append((api_key, location))
        if self.error:
            raise self.error
        return self.response


class FakeGeoLocationClient:
    """Stands in for GeoLocationClient; records lookups."""

    def __init__(self, response: TimeResponse | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def get_time(self, api_key: str, location: str) -> TimeResponse:
        self.calls.append((api_key, location))
        if self.error:
            raise self.error
        return self.response


class EchoInput(BaseModel):
    model_config = ConfigDict(strict=True)

    text: str


def make_echo_tool(name: str = "echo", handler=None) -> ToolDefinition:
    """Tool that returns its input unless a custom handler is given."""

    async def echo(params: EchoInput):
        return {"echo": params.text}

    return ToolDefinition(
        name=name,
        description="Echo the given text",
        input_schema_class=EchoInput,
        handler=handler or echo,
    )


def line_reader(*lines: str):
    """read_line callable that yields the given lines, then EOF."""
    remaining = iter(lines)

    def read_line() -> str:
        try:
            return next(remaining)
        except StopIteration:
            raise EOFError from None

    return read_line


@pytest.fixture
def weather_response() -> WeatherResponse:
    return WeatherResponse.model_validate(
        {
            "location": {"name": "Seattle", "region": "Washington", "country": "United States of America"},
            "current": {
                "last_updated_epoch": 1748800800,
                "temp_c": 20.0,
                "temp_f": 68.0,
                "condition": {"text": "Cloudy", "icon": "//cdn.weatherapi.com/113.png", "code": 1006},
                "humidity": 70,
            },
        }
    )


@pytest.fixture
def time_response() -> TimeResponse:
    return TimeResponse(date="2025-06-01", time_12="08:30:12 PM")


@pytest.fixture
def weather_client(weather_response) -> FakeWeatherClient:
    return FakeWeatherClient(response=weather_response)


@pytest.fixture
def geolocation_client(time_response) -> FakeGeoLocationClient:
    return FakeGeoLocationClient(response=time_response)


@pytest.fixture
def credentials(monkeypatch):
    """Provider credentials present in the environment."""
    monkeypatch.setenv("WEATHER_API_KEY", "test-weather-key")
    monkeypatch.setenv("IP_GEOLOCATION_API_KEY", "test-geo-key")


@pytest.fixture
def registry(weather_client, geolocation_client) -> ToolsRegistry:
    return ToolsRegistry(
        [
            create_weather_tool(weather_client),
            create_current_time_tool(geolocation_client),
        ]
    )


@pytest.fixture
def conversation(registry) -> Conversation:
    return Conversation(system_prompt="Answer with one sentence or tool call.", tools=registry.declarations())
