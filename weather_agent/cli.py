"""Interactive chat CLI for the weather and time assistant."""

import asyncio
import sys
from collections.abc import Callable

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt

from weather_agent.clients.anthropic import AnthropicClient, AnthropicConfig
from weather_agent.config import AgentConfig
from weather_agent.errors import ModelTransportError
from weather_agent.models.conversation import Conversation
from weather_agent.services.executor import ToolExecutor
from weather_agent.services.model import AnthropicModelClient
from weather_agent.services.orchestrator import TurnOrchestrator
from weather_agent.tools.registry import create_default_registry
from weather_agent.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def _prompt_reader(console: Console) -> Callable[[], str]:
    def read_line() -> str:
        return Prompt.ask("[bold cyan]>[/bold cyan]", console=console)

    return read_line


class SessionLoop:
    """Read a line, run one turn, print the reply; repeat until exit."""

    def __init__(
        self,
        orchestrator: TurnOrchestrator,
        conversation: Conversation,
        console: Console | None = None,
        read_line: Callable[[], str] | None = None,
        input_guard: Callable[[str], None] | None = None,
        exit_token: str = "exit",
    ):
        """Initialize the session loop.

        Args:
            orchestrator: Runs the tool-call loop for each turn
            conversation: Transcript owned by this session
            console: Rich console for output
            read_line: Returns the next input line; raises EOFError at end of input
            input_guard: Raises ValueError for input that must not reach the model
            exit_token: Line that ends the session
        """
        self.orchestrator = orchestrator
        self.conversation = conversation
        self.console = console or Console()
        self.read_line = read_line or _prompt_reader(self.console)
        self.input_guard = input_guard
        self.exit_token = exit_token

    def run(self) -> int:
        """Run until the exit token, end of input or Ctrl-C.

        Input is read synchronously; only the turn itself runs on the event
        loop, so Ctrl-C at the prompt raises KeyboardInterrupt right away.

        Returns:
            Process exit code

        Raises:
            ModelTransportError: If the model endpoint fails
        """
        self._show_welcome()

        try:
            with asyncio.Runner() as runner:
                self._loop(runner)
        except KeyboardInterrupt:
            logger.info(f"Session {self.conversation.session_id} interrupted")

        self.console.print("[yellow]Goodbye![/yellow]")
        return 0

    def _loop(self, runner: asyncio.Runner) -> None:
        while True:
            try:
                line = self.read_line()
            except EOFError:
                return

            if line.strip() == self.exit_token:
                return

            user_request = self._clean(line)
            if not user_request:
                continue

            if self.input_guard is not None:
                try:
                    self.input_guard(user_request)
                except ValueError as e:
                    logger.warning(f"Rejected user input for session {self.conversation.session_id}: {e}")
                    self.console.print(f"[yellow]{e}[/yellow]")
                    continue

            logger.info(f"User: {user_request}")
            self.conversation.append_user_text(user_request)
            result = runner.run(self.orchestrator.run_turn(self.conversation))
            logger.debug(
                f"Turn used {result.model_calls} model calls, {result.rounds} tool rounds"
                f" (tool limit hit: {result.hit_tool_limit})"
            )

            reply = self.conversation.latest_text()
            if reply is None:
                continue

            logger.info(f"Assistant: {reply}")
            self._display_response(reply)
            if reply == self.exit_token:
                return

    @staticmethod
    def _clean(line: str) -> str:
        return line.strip().lstrip(">").strip()

    def _show_welcome(self) -> None:
        self.console.print(
            Panel.fit(
                "[bold blue]Hi, I'm a weather bot. I can help you with the weather forecast[/bold blue]\n"
                f"Send `{self.exit_token}` to stop",
                border_style="blue",
            )
        )

    def _display_response(self, text: str) -> None:
        self.console.print(
            Panel(
                Markdown(text),
                title="[bold green]Assistant[/bold green]",
                border_style="green",
                padding=(0, 1),
            )
        )


def build_session(config: AgentConfig, console: Console) -> SessionLoop:
    """Wire the Anthropic client, tools and orchestrator into a session."""
    client = AnthropicClient(config=AnthropicConfig())
    registry = create_default_registry()

    orchestrator = TurnOrchestrator(
        model=AnthropicModelClient(client),
        executor=ToolExecutor(registry),
        max_concurrent_tools=config.max_concurrent_tools,
        max_tool_rounds=config.max_tool_rounds,
    )
    conversation = Conversation(system_prompt=config.system_prompt, tools=registry.declarations())
    logger.info(f"Created session {conversation.session_id} with tools {registry.get_tool_names()}")

    return SessionLoop(
        orchestrator=orchestrator,
        conversation=conversation,
        console=console,
        input_guard=client.validate_message_tokens,
        exit_token=config.exit_token,
    )


def main() -> int:
    """Main entry point for the chat CLI."""
    setup_logging()
    console = Console()

    try:
        session = build_session(AgentConfig.from_env(), console)
    except ValueError as e:
        console.print(Panel(str(e), title="[bold red]Configuration error[/bold red]", border_style="red"))
        return 1

    try:
        return session.run()
    except ModelTransportError as e:
        logger.error(f"Session ended by model error: {e}")
        console.print(Panel(str(e), title="[bold red]Model error[/bold red]", border_style="red"))
        return 1


if __name__ == "__main__":
    sys.exit(main())
