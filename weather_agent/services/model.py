"""Model-call capability used by the turn orchestrator.

``ModelClient.send`` takes the fixed system prompt, the tool declarations and
the transcript, and returns one of four reply shapes. ``AnthropicModelClient``
implements it on top of the Anthropic Messages API.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from anthropic import APIError

from weather_agent.clients.anthropic import AnthropicClient, AnthropicMessage, AnthropicResponse, AnthropicTool
from weather_agent.errors import ModelTransportError
from weather_agent.models.llm import TextBlock, ToolResultBlock, ToolUseBlock, UnknownBlock
from weather_agent.models.messages import (
    AssistantText,
    AssistantToolRequest,
    Message,
    ToolDeclaration,
    ToolInvocation,
    ToolResult,
    UserText,
)
from weather_agent.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TextReply:
    text: str


@dataclass(frozen=True)
class ToolRequestsReply:
    invocations: tuple[ToolInvocation, ...]


@dataclass(frozen=True)
class UnrecognizedReply:
    block_types: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EmptyReply:
    pass


ModelReply = TextReply | ToolRequestsReply | UnrecognizedReply | EmptyReply


class ModelClient(Protocol):
    """Anything that can answer a conversation with text or tool requests."""

    async def send(
        self,
        system_prompt: str,
        tools: Sequence[ToolDeclaration],
        transcript: Sequence[Message],
    ) -> ModelReply:
        """Send the conversation to the model.

        Raises:
            ModelTransportError: If the model endpoint fails
        """
        ...


def to_anthropic_messages(transcript: Sequence[Message]) -> list[AnthropicMessage]:
    """Convert the transcript to Anthropic messages.

    Consecutive tool results are grouped into one user message, which is how
    the API expects the answers to a multi-tool request.
    """
    messages: list[AnthropicMessage] = []

    for message in transcript:
        if isinstance(message, UserText):
            messages.append(AnthropicMessage(role="user", content=message.text))
        elif isinstance(message, AssistantText):
            messages.append(AnthropicMessage(role="assistant", content=message.text))
        elif isinstance(message, AssistantToolRequest):
            blocks = [
                ToolUseBlock(id=invocation.call_id, name=invocation.tool_name, input=invocation.arguments)
                for invocation in message.invocations
            ]
            messages.append(AnthropicMessage(role="assistant", content=blocks))
        elif isinstance(message, ToolResult):
            block = ToolResultBlock(
                tool_use_id=message.call_id,
                content=message.payload_json,
                is_error=message.is_error,
            )
            previous = messages[-1] if messages else None
            if previous and previous.role == "user" and isinstance(previous.content, list):
                previous.content.append(block)
            else:
                messages.append(AnthropicMessage(role="user", content=[block]))

    return messages


def to_anthropic_tools(tools: Sequence[ToolDeclaration]) -> list[AnthropicTool]:
    return [
        AnthropicTool(name=tool.name, description=tool.description, input_schema=tool.json_schema)
        for tool in tools
    ]


def to_model_reply(response: AnthropicResponse) -> ModelReply:
    """Classify an Anthropic response into one of the reply shapes."""
    if not response.content:
        return EmptyReply()

    tool_uses = [block for block in response.content if isinstance(block, ToolUseBlock)]
    if tool_uses:
        return ToolRequestsReply(
            invocations=tuple(
                ToolInvocation(call_id=block.id, tool_name=block.name, arguments=block.input) for block in tool_uses
            )
        )

    text = "".join(block.text for block in response.content if isinstance(block, TextBlock)).strip()
    if text:
        return TextReply(text=text)

    unknown = tuple(block.type for block in response.content if isinstance(block, UnknownBlock))
    if unknown:
        return UnrecognizedReply(block_types=unknown)

    return EmptyReply()


class AnthropicModelClient:
    """ModelClient backed by the Anthropic Messages API."""

    def __init__(self, client: AnthropicClient):
        self.client = client

    async def send(
        self,
        system_prompt: str,
        tools: Sequence[ToolDeclaration],
        transcript: Sequence[Message],
    ) -> ModelReply:
        messages = to_anthropic_messages(transcript)
        logger.debug(f"Sending {len(messages)} messages to the model")

        try:
            response = await self.client.create_message(
                messages=messages,
                system_prompt=system_prompt,
                tools=to_anthropic_tools(tools),
            )
        except APIError as e:
            raise ModelTransportError(f"Failed to call Anthropic API: {e}") from e

        logger.debug(
            f"Model {response.model} stopped with {response.stop_reason}; "
            f"tokens in={response.usage.input_tokens} out={response.usage.output_tokens}"
        )
        return to_model_reply(response)
