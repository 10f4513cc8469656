"""
Structured logging setup
"""

import logging
import sys

import structlog

from spendsight.config import settings

def configure_logging(level: str = None, json_output: bool = None) -> None:
    """
    Configure structlog on top of the stdlib logging module.

    Args:
        level: Log level name (defaults to settings.LOG_LEVEL)
        json_output: Render JSON lines instead of console output
    """
    level = level or settings.LOG_LEVEL
    if json_output is None:
        json_output = settings.LOG_JSON

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
