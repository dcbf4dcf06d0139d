"""Structured logging setup."""

import logging
import sys
from typing import Optional

import structlog


def configure_logging(level: Optional[str] = None, json: Optional[bool] = None) -> None:
    """
    Configure structlog for the engine.

    Args:
        level: Log level name; defaults to LOG_LEVEL from the environment
        json: Render JSON lines instead of console output; defaults to LOG_JSON
    """
    from carrier_engine.core.config import get_config

    env = get_config().env
    level = (level or env.log_level).upper()
    json = env.log_json if json is None else json

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
    )
