"""
Core infrastructure for the carrier engine.

This module provides:
- Config: Configuration management
- Errors: Engine error taxonomy
- Logging: structlog setup
"""

from .config import ConfigManager, EngineConfig, get_config
from .errors import (
    ConflictError,
    DuplicatePeriodError,
    EngineError,
    NotFoundError,
    PolicyViolationError,
    ValidationError,
)
from .logging import configure_logging

__all__ = [
    "ConfigManager",
    "EngineConfig",
    "get_config",
    "configure_logging",
    "EngineError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "DuplicatePeriodError",
    "PolicyViolationError",
]
