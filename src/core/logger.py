import logging
import os
import sys

import structlog
from dotenv import load_dotenv

load_dotenv()

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging(level: int | None = logging.INFO, colors: bool | None = None) -> None:
    """
    Configure structured logging for the trend monitor.

    Args:
        level: The logging level to use. Defaults to INFO.
        colors: Colorize console output. Defaults to on only when stderr is a terminal.
    """
    if colors is None:
        colors = sys.stderr.isatty()

    # Replaces the root handler installed at import time
    logging.basicConfig(level=level, force=True)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(
            colors=colors,
            exception_formatter=structlog.dev.plain_traceback,
            pad_event=40,
        ),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def level_from_env(default: str = "INFO") -> int:
    """Resolve LOG_LEVEL from the environment, falling back to `default`."""
    name = os.getenv("LOG_LEVEL", default).upper()
    return LOG_LEVELS.get(name, LOG_LEVELS[default])


setup_logging(level=level_from_env())
