"""
Logging configuration module for the Starling editor client.

Configures structlog with appropriate processors. Output goes to stderr because
stdout carries the msgpack-rpc channel when running inside Neovim.
"""

import logging
import sys

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for the application.

    Uses ConsoleRenderer for readable output on stderr.

    Args:
        level: Name of the minimum level to emit (e.g. "DEBUG", "INFO")
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _level_number(level: str) -> int:
    number = logging.getLevelName(level.upper())
    # getLevelName returns "Level X" for unknown names
    return number if isinstance(number, int) else logging.INFO
