"""
Base class for all carrier engine components.

Provides common functionality:
- Configuration loading
- Structured logging
- Decision tracking for audit and debugging
"""

import json
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime
from typing import Any, Optional

import structlog
from pydantic import BaseModel

from carrier_engine.core.config import ConfigManager, EngineConfig, get_config

DECISION_HISTORY_LIMIT = 1000


class ComponentDecision(BaseModel):
    """
    Structured record of a component decision.

    Used to trace why a score, tier or ranking came out the way it did.
    """

    timestamp: datetime
    component_name: str
    decision_type: str
    input_data: dict[str, Any]
    reasoning: str
    output_data: dict[str, Any]
    execution_time_seconds: float


class BaseComponent(ABC):
    """
    Base class for the engine components.

    Provides:
    - Business rules from the config manager
    - A bound structlog logger
    - Bounded decision history
    """

    def __init__(
        self,
        component_name: str,
        config_manager: Optional[ConfigManager] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        """
        Initialize the base component.

        Args:
            component_name: Name of the component (e.g., "matcher", "tier_resolver")
            config_manager: Optional config manager (defaults to global instance)
            logger: Optional structured logger
        """
        self.component_name = component_name
        self.config_manager = config_manager or get_config()
        self.logger = logger or structlog.get_logger(component=component_name)

        # Decision history (for debugging and audit queries)
        self.decision_history: deque[ComponentDecision] = deque(maxlen=DECISION_HISTORY_LIMIT)

    @property
    def engine_config(self) -> EngineConfig:
        return self.config_manager.engine

    def log_decision(self, decision: ComponentDecision) -> None:
        """
        Log a component decision.

        Args:
            decision: ComponentDecision instance with decision details
        """
        self.decision_history.append(decision)
        self.logger.info(
            "component_decision",
            decision_type=decision.decision_type,
            reasoning=decision.reasoning,
            execution_time=decision.execution_time_seconds,
        )

    def export_decisions(self, filepath: str) -> None:
        """
        Export decision history to JSON file.

        Args:
            filepath: Path to output JSON file
        """
        with open(filepath, "w") as f:
            decisions_dict = [d.model_dump(mode="json") for d in self.decision_history]
            json.dump(decisions_dict, f, indent=2, default=str)

        self.logger.info("decisions_exported", filepath=filepath, count=len(self.decision_history))

    @abstractmethod
    def execute(self, *args: Any, **kwargs: Any) -> Any:
        """
        Execute the component's primary function.

        Returns:
            Component-specific output
        """
        pass

    def __repr__(self) -> str:
        """String representation of the component."""
        return f"{self.__class__.__name__}(component_name='{self.component_name}')"
