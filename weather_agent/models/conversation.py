"""Conversation state threaded through every turn."""

from collections import Counter
from collections.abc import Iterable, Sequence
from typing import TypeVar

from cuid2 import cuid_wrapper
from pydantic import BaseModel

from weather_agent.errors import ConversationStateError
from weather_agent.models.messages import (
    AssistantText,
    AssistantToolRequest,
    Message,
    ToolDeclaration,
    ToolInvocation,
    ToolResult,
    UserText,
)

cuid = cuid_wrapper()

M = TypeVar("M", bound=BaseModel)


class Conversation:
    """Append-only transcript for a single chat session.

    The system prompt and tool declarations are fixed at construction.
    Messages can only be added through the ``append_*`` methods, which keep
    every tool request paired with exactly one result per call id.
    """

    def __init__(
        self,
        system_prompt: str,
        tools: Iterable[ToolDeclaration],
        session_id: str | None = None,
    ):
        self._system_prompt = system_prompt
        self._tools = tuple(tools)
        self._session_id = session_id or cuid()
        self._messages: list[Message] = []

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    @property
    def tools(self) -> tuple[ToolDeclaration, ...]:
        return self._tools

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def pending_tool_request(self) -> AssistantToolRequest | None:
        """The last tool request if its results have not been appended yet."""
        if self._messages and isinstance(self._messages[-1], AssistantToolRequest):
            return self._messages[-1]
        return None

    def append_user_text(self, text: str) -> UserText:
        return self._append(UserText(text=text))

    def append_assistant_text(self, text: str) -> AssistantText:
        return self._append(AssistantText(text=text))

    def append_tool_request(self, invocations: Sequence[ToolInvocation]) -> AssistantToolRequest:
        if not invocations:
            raise ConversationStateError("A tool request needs at least one invocation")
        return self._append(AssistantToolRequest(invocations=list(invocations)))

    def append_tool_results(self, results: Sequence[ToolResult]) -> None:
        """Append the full result set for the pending tool request.

        Raises:
            ConversationStateError: If there is no pending request or the call
                ids do not match the request one for one
        """
        request = self.pending_tool_request
        if request is None:
            raise ConversationStateError("Tool results must follow a tool request")

        expected = Counter(request.call_ids)
        received = Counter(result.call_id for result in results)
        if expected != received:
            raise ConversationStateError(
                f"Tool results {sorted(received.elements())} do not match "
                f"requested calls {sorted(expected.elements())}"
            )

        self._messages.extend(results)

    def latest_text(self) -> str | None:
        """Text of the last message when it is an assistant text reply."""
        if self._messages and isinstance(self._messages[-1], AssistantText):
            return self._messages[-1].text
        return None

    def _append(self, message: M) -> M:
        if self.pending_tool_request is not None:
            raise ConversationStateError("Cannot add messages while tool results are pending")
        self._messages.append(message)
        return message
