"""structlog setup shared by the CLI and scripts."""

import logging
import sys

import structlog

from fashion.config import settings


def configure_logging(verbose: bool = False, json_logs: bool = None) -> None:
    """Configure stdlib logging and structlog once per process."""
    level_name = "DEBUG" if verbose or settings.DEBUG else settings.LOG_LEVEL
    level = getattr(logging, level_name.upper(), logging.INFO)
    if json_logs is None:
        json_logs = settings.LOG_JSON

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
