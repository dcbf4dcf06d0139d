"""
Error taxonomy for the carrier engine.

- NotFoundError: load or carrier absent
- ValidationError: malformed or duplicate-period metric input
- ConflictError: concurrent duplicate scorecard insert
- PolicyViolationError: override attempted outside policy
"""

from typing import Any, Optional


class EngineError(Exception):
    """
    Base error for the carrier engine.

    Attributes:
        code: Stable error code (e.g., "not_found")
        message: Human-readable error message
        details: Optional additional context
    """

    code = "engine_error"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a dict for collaborator responses."""
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(EngineError):
    """Requested load or carrier does not exist."""

    code = "not_found"


class ValidationError(EngineError):
    """Metric input is malformed or recomputes an existing period."""

    code = "validation_error"


class ConflictError(EngineError):
    """A write collided with an existing record."""

    code = "conflict"


class DuplicatePeriodError(ConflictError, ValidationError):
    """A scorecard already exists for this carrier and period."""

    code = "duplicate_period"

    def __init__(self, carrier_id: str, period: str) -> None:
        super().__init__(
            f"Scorecard for carrier {carrier_id} period {period} already exists",
            details={"carrier_id": carrier_id, "period": period},
        )


class PolicyViolationError(EngineError):
    """Manual override attempted without meeting its preconditions."""

    code = "policy_violation"
