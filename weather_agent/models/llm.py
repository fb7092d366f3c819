"""Anthropic content block models."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class TextBlock(BaseModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    """Tool use content block."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Any


class ToolResultBlock(BaseModel):
    """Tool result content block."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool = False


class UnknownBlock(BaseModel):
    """Any block type this client does not model (thinking, server tools...)."""

    model_config = ConfigDict(extra="allow")

    type: str


ContentBlock = TextBlock | ToolUseBlock | ToolResultBlock | UnknownBlock
