"""Turn orchestrator: the tool-call loop behind every user turn."""

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from weather_agent.models.conversation import Conversation
from weather_agent.models.messages import ToolInvocation, ToolOutcome, ToolResult
from weather_agent.services.executor import ToolExecutor
from weather_agent.services.model import (
    EmptyReply,
    ModelClient,
    TextReply,
    ToolRequestsReply,
    UnrecognizedReply,
)
from weather_agent.utils.logging import get_logger

logger = get_logger(__name__)

NO_RESPONSE_TEXT = "No response"
UNSUPPORTED_RESPONSE_TEXT = "Unsupported response type"
TOOL_LIMIT_TEXT = "I couldn't finish this request within the tool call limit. Please try rephrasing it."


class TurnState(Enum):
    AWAITING_MODEL_REPLY = "awaiting_model_reply"
    DISPATCHING_TOOLS = "dispatching_tools"
    DONE = "done"


@dataclass
class TurnResult:
    """Summary of one completed turn."""

    model_calls: int = 0
    rounds: int = 0
    hit_tool_limit: bool = False


class TurnOrchestrator:
    """Drives the model until it answers with plain text.

    Each model reply that asks for tools is executed as one round: every
    invocation runs concurrently (bounded by ``max_concurrent_tools``) and all
    results are appended before the model is called again.
    """

    def __init__(
        self,
        model: ModelClient,
        executor: ToolExecutor,
        max_concurrent_tools: int = 3,
        max_tool_rounds: int | None = 10,
    ):
        """Initialize the orchestrator.

        Args:
            model: Model-call capability
            executor: Tool executor for requested invocations
            max_concurrent_tools: Maximum tool executions in flight at once
            max_tool_rounds: Tool rounds allowed per turn; None means unbounded
        """
        if max_concurrent_tools < 1:
            raise ValueError("max_concurrent_tools must be at least 1")

        self.model = model
        self.executor = executor
        self.max_concurrent_tools = max_concurrent_tools
        self.max_tool_rounds = max_tool_rounds

    async def run_turn(self, conversation: Conversation) -> TurnResult:
        """Run the call loop for the latest user message.

        Raises:
            ModelTransportError: If the model endpoint fails
        """
        result = TurnResult()
        state = TurnState.AWAITING_MODEL_REPLY
        pending: Sequence[ToolInvocation] = ()

        logger.info(f"Starting turn for session {conversation.session_id} with {len(conversation)} messages")

        while state is not TurnState.DONE:
            if state is TurnState.AWAITING_MODEL_REPLY:
                logger.debug(f"Model call {result.model_calls + 1} (rounds completed: {result.rounds})")
                reply = await self.model.send(conversation.system_prompt, conversation.tools, conversation.messages)
                result.model_calls += 1

                match reply:
                    case TextReply(text=text) if text.strip():
                        conversation.append_assistant_text(text.strip())
                        state = TurnState.DONE

                    case ToolRequestsReply(invocations=invocations) if invocations:
                        if self.max_tool_rounds is not None and result.rounds >= self.max_tool_rounds:
                            logger.warning(f"Turn reached max tool rounds ({self.max_tool_rounds})")
                            conversation.append_assistant_text(TOOL_LIMIT_TEXT)
                            result.hit_tool_limit = True
                            state = TurnState.DONE
                        else:
                            logger.info(f"Model requested {len(invocations)} tool calls")
                            conversation.append_tool_request(invocations)
                            pending = invocations
                            state = TurnState.DISPATCHING_TOOLS

                    case UnrecognizedReply(block_types=block_types):
                        logger.error(f"Unsupported response type: {block_types}")
                        conversation.append_assistant_text(UNSUPPORTED_RESPONSE_TEXT)
                        state = TurnState.DONE

                    case EmptyReply() | ToolRequestsReply() | TextReply():
                        logger.error("No response from model")
                        conversation.append_assistant_text(NO_RESPONSE_TEXT)
                        state = TurnState.DONE

                    case _:
                        logger.error(f"Unsupported response type: {type(reply).__name__}")
                        conversation.append_assistant_text(UNSUPPORTED_RESPONSE_TEXT)
                        state = TurnState.DONE

            elif state is TurnState.DISPATCHING_TOOLS:
                results = await self.dispatch(pending)
                conversation.append_tool_results(results)
                result.rounds += 1
                pending = ()
                state = TurnState.AWAITING_MODEL_REPLY

        logger.info(f"Turn completed in {result.model_calls} model calls and {result.rounds} tool rounds")
        return result

    async def dispatch(self, invocations: Sequence[ToolInvocation]) -> list[ToolResult]:
        """Execute a round of invocations with bounded concurrency.

        All invocations are scheduled up front; the semaphore only limits how
        many execute at once. Results come back in request order.
        """
        semaphore = asyncio.Semaphore(self.max_concurrent_tools)

        async def run_one(invocation: ToolInvocation) -> ToolOutcome:
            async with semaphore:
                return await self.executor.execute(invocation)

        outcomes = await asyncio.gather(*(run_one(invocation) for invocation in invocations))

        logger.debug(f"Tool outcomes: {outcomes}")
        return [
            outcome.to_message(invocation.call_id)
            for invocation, outcome in zip(invocations, outcomes, strict=True)
        ]
