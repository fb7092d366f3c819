"""Base types and definitions for tools."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from weather_agent.models.messages import ToolDeclaration

ToolHandler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class ToolDefinition:
    """Definition of a tool available to the assistant.

    ``handler`` receives the validated ``input_schema_class`` instance and
    returns the JSON value reported back to the model.
    """

    name: str
    description: str
    input_schema_class: type[BaseModel]
    handler: ToolHandler

    def get_json_schema(self) -> dict[str, Any]:
        """Get JSON schema for this tool's input."""
        return self.input_schema_class.model_json_schema()

    def parse_input(self, raw_input: dict[str, Any]) -> BaseModel:
        """Parse and validate tool input."""
        return self.input_schema_class.model_validate(raw_input)

    def declaration(self) -> ToolDeclaration:
        """Declaration advertised to the model."""
        return ToolDeclaration(name=self.name, description=self.description, json_schema=self.get_json_schema())
