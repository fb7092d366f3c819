"""Tool executor: validates one invocation and runs its handler.

Every failure, from an unknown tool name to a provider outage, comes back as
a ``ToolFailure`` so the model can see it and respond.
"""

from pydantic import ValidationError

from weather_agent.errors import InvalidArgumentsError, MissingParameterError, ToolError, UnsupportedToolError
from weather_agent.models.messages import ToolFailure, ToolInvocation, ToolOutcome, ToolSuccess
from weather_agent.tools.registry import ToolsRegistry
from weather_agent.utils.logging import get_logger

logger = get_logger(__name__)


class ToolExecutor:
    """Dispatches tool invocations to registered handlers."""

    def __init__(self, registry: ToolsRegistry):
        self.registry = registry

    async def execute(self, invocation: ToolInvocation) -> ToolOutcome:
        """Execute a single tool invocation.

        Args:
            invocation: Tool call requested by the model

        Returns:
            ToolSuccess with the tool's JSON value, or ToolFailure describing
            what went wrong. Never raises.
        """
        logger.info(
            f"Tool call: {invocation.tool_name} (call_id={invocation.call_id}) arguments={invocation.arguments}"
        )

        try:
            result = await self._run(invocation)
        except ToolError as e:
            logger.error(f"Failed to make tool call {invocation.tool_name}: {e}")
            return ToolFailure(error=str(e))
        except Exception as e:
            logger.error(f"Tool {invocation.tool_name} raised unexpectedly: {e}", exc_info=True)
            return ToolFailure(error=f"tool {invocation.tool_name} failed: {e}")

        logger.debug(f"Tool {invocation.tool_name} succeeded: {str(result)[:100]}")
        return ToolSuccess(payload=result)

    async def _run(self, invocation: ToolInvocation):
        tool = self.registry.get(invocation.tool_name)
        if tool is None:
            raise UnsupportedToolError(invocation.tool_name)

        if not isinstance(invocation.arguments, dict):
            raise InvalidArgumentsError()

        try:
            params = tool.parse_input(invocation.arguments)
        except ValidationError as e:
            raise self._first_parameter_error(e) from e

        return await tool.handler(params)

    @staticmethod
    def _first_parameter_error(error: ValidationError) -> ToolError:
        """Report only the first failing field, in declaration order."""
        for detail in error.errors():
            if detail["loc"]:
                return MissingParameterError(str(detail["loc"][0]))
        return InvalidArgumentsError()
