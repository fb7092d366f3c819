"""Logging configuration."""

import logging
import os

from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler


class LogConfig(BaseModel):
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "%(name)s - %(message)s"
    date_format: str = "[%X]"
    rich_tracebacks: bool = True


def setup_logging(config: LogConfig | None = None) -> None:
    """Set up logging for the CLI.

    Records go to stderr through rich so they never interleave with the chat
    transcript printed on stdout.
    """
    if config is None:
        config = LogConfig(level=os.getenv("LOG_LEVEL", "WARNING"))

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=config.rich_tracebacks,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter(fmt=config.format, datefmt=config.date_format))

    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        handlers=[handler],
        force=True,  # Override any existing configuration
    )

    # Set specific log levels for third-party libraries
    logging.getLogger("anthropic").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)
        level: Optional level override; otherwise the root configuration applies

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if level:
        logger.setLevel(level.upper())

    return logger
