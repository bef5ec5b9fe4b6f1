"""Structured logging setup built on structlog.

Every module obtains its logger through ``get_logger`` and logs snake_case
event names with keyword context, e.g.::

    logger = get_logger(__name__, component="PatternDetector")
    logger.debug("support_resistance_found", support=3, resistance=2)
"""

import logging
import sys
from typing import Any

import structlog

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """
    Configure stdlib logging and structlog.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON lines instead of the console format
    """
    log_level = _LEVELS.get(level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
        force=True,
    )

    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def get_logger(name: str, **initial_values: Any) -> Any:
    """
    Get a structlog logger bound to the given context.

    The logger is lazy, so it picks up whatever configuration
    ``setup_logging`` installs later.

    Args:
        name: Logger name, usually ``__name__``
        **initial_values: Context bound to every event (e.g. component)

    Returns:
        A structlog bound logger proxy
    """
    return structlog.get_logger(name, **initial_values)
