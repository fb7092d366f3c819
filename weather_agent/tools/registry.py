"""Tools registry mapping tool names to definitions."""

from collections.abc import Iterable

from weather_agent.clients.geolocation import GeoLocationClient
from weather_agent.clients.weather import WeatherClient
from weather_agent.models.messages import ToolDeclaration
from weather_agent.tools.base import ToolDefinition
from weather_agent.tools.current_time import create_current_time_tool
from weather_agent.tools.weather import create_weather_tool


class ToolsRegistry:
    """Registry of the tools advertised to the model."""

    def __init__(self, tools: Iterable[ToolDefinition] = ()):
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools:
            self.register_tool(tool)

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a new tool in the registry.

        Raises:
            ValueError: If the name is taken or the input schema is not an object
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")

        schema_type = tool.get_json_schema().get("type")
        if schema_type != "object":
            raise ValueError(f"Tool {tool.name} input schema must be an object, got {schema_type!r}")

        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolDefinition | None:
        """Look up a tool by name; unknown names return None."""
        return self._tools.get(name)

    def declarations(self) -> tuple[ToolDeclaration, ...]:
        """Declarations for every registered tool, in registration order."""
        return tuple(tool.declaration() for tool in self._tools.values())

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools


def create_default_registry(
    weather_client: WeatherClient | None = None,
    geolocation_client: GeoLocationClient | None = None,
) -> ToolsRegistry:
    """Registry with the weather and current time tools."""
    return ToolsRegistry(
        [
            create_weather_tool(weather_client or WeatherClient()),
            create_current_time_tool(geolocation_client or GeoLocationClient()),
        ]
    )
