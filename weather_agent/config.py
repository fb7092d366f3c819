"""Runtime configuration and credential lookup."""

import os
from dataclasses import dataclass

from weather_agent.errors import EnvVarNotSetError

SYSTEM_PROMPT = "Answer with one sentence or tool call. Send `exit` to stop."

WEATHER_API_KEY_VAR = "WEATHER_API_KEY"
GEOLOCATION_API_KEY_VAR = "IP_GEOLOCATION_API_KEY"


@dataclass
class AgentConfig:
    """Configuration for a chat session and its tool-call loop."""

    system_prompt: str = SYSTEM_PROMPT
    exit_token: str = "exit"
    max_concurrent_tools: int = 3
    # None disables the guard
    max_tool_rounds: int | None = 10

    @classmethod
    def from_env(cls) -> "AgentConfig":
        """Build configuration, applying environment overrides when present.

        Raises:
            ValueError: If an override is not an integer
        """
        config = cls()

        rounds = _int_env("WEATHER_AGENT_MAX_TOOL_ROUNDS")
        if rounds is not None:
            config.max_tool_rounds = rounds if rounds > 0 else None

        concurrency = _int_env("WEATHER_AGENT_TOOL_CONCURRENCY")
        if concurrency is not None:
            config.max_concurrent_tools = max(1, concurrency)

        return config


def _int_env(var_name: str) -> int | None:
    value = os.getenv(var_name, "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{var_name} must be an integer, got {value!r}") from None


def get_credential(var_name: str) -> str:
    """Read a credential from the environment.

    Raises:
        EnvVarNotSetError: If the variable is unset or empty
    """
    value = os.getenv(var_name)
    if not value:
        raise EnvVarNotSetError(var_name)
    return value
