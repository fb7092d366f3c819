"""Tools the model can call."""

from weather_agent.tools.base import ToolDefinition
from weather_agent.tools.registry import ToolsRegistry, create_default_registry

__all__ = ["ToolDefinition", "ToolsRegistry", "create_default_registry"]
