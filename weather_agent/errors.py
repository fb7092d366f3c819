"""Exception hierarchy for the weather agent.

Tool-side errors (``ToolError`` subclasses) are converted into tool results
the model can read. ``ModelTransportError`` ends the session.
"""


class AgentError(Exception):
    """Base exception for all weather agent errors."""


class ToolError(AgentError):
    """Raised while executing a tool; reported back to the model as data."""


class MissingParameterError(ToolError):
    """Raised when a required tool argument is missing or has the wrong type."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"missing parameter: {name}")


class InvalidArgumentsError(ToolError):
    """Raised when tool arguments are not a JSON object."""

    def __init__(self) -> None:
        super().__init__("invalid arguments")


class UnsupportedToolError(ToolError):
    """Raised when the model asks for a tool that is not registered."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"unsupported tool: {tool_name}")


class EnvVarNotSetError(ToolError):
    """Raised when a credential environment variable is missing."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name
        super().__init__(f"environment variable not set: {var_name}")


class ApiRequestFailedError(ToolError):
    """Raised when an upstream provider request fails."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(f"API request failed: {detail}")


class ResponseParseError(ToolError):
    """Raised when an upstream provider payload cannot be parsed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"failed to parse API response: {detail}")


class ModelTransportError(AgentError):
    """Raised when the language model endpoint cannot be reached or fails."""


class ConversationStateError(AgentError):
    """Raised when an append would break the transcript ordering rules."""
