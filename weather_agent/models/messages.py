"""Transcript messages, tool invocations and tool outcomes."""

import copy
import json
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ToolInvocation(BaseModel):
    """A tool call requested by the model."""

    model_config = ConfigDict(frozen=True)

    call_id: str
    tool_name: str
    # Kept as sent by the model; the executor checks that it is an object
    arguments: Any = Field(default_factory=dict)

    @field_validator("arguments")
    @classmethod
    def detach_arguments(cls, value: Any) -> Any:
        # The caller keeps its own reference to the decoded input
        return copy.deepcopy(value)


class ToolDeclaration(BaseModel):
    """A tool advertised to the model."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    json_schema: dict[str, Any]


class UserText(BaseModel):
    """Text typed by the user."""

    kind: Literal["user_text"] = "user_text"
    text: str


class AssistantText(BaseModel):
    """Plain text reply from the model."""

    kind: Literal["assistant_text"] = "assistant_text"
    text: str


class AssistantToolRequest(BaseModel):
    """A set of tool invocations requested by the model in a single reply."""

    kind: Literal["assistant_tool_request"] = "assistant_tool_request"
    invocations: list[ToolInvocation]

    @property
    def call_ids(self) -> list[str]:
        return [invocation.call_id for invocation in self.invocations]


class ToolResult(BaseModel):
    """Result of one tool invocation, keyed by its call id."""

    kind: Literal["tool_result"] = "tool_result"
    call_id: str
    payload_json: str
    is_error: bool = False


Message = Annotated[
    UserText | AssistantText | AssistantToolRequest | ToolResult,
    Field(discriminator="kind"),
]


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class ToolSuccess:
    """Tool executed and produced a JSON value."""

    payload: Any

    def to_message(self, call_id: str) -> ToolResult:
        return ToolResult(call_id=call_id, payload_json=_compact_json(self.payload))


@dataclass(frozen=True)
class ToolFailure:
    """Tool could not produce a value; the error is shown to the model."""

    error: str

    def to_message(self, call_id: str) -> ToolResult:
        return ToolResult(call_id=call_id, payload_json=_compact_json({"error": self.error}), is_error=True)


ToolOutcome = ToolSuccess | ToolFailure
