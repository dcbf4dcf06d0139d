"""
Metric normalization - raw weekly KPIs into the canonical metric set.

Percentages are clamped to [0, 100]. The claim ratio is clamped to [0, 100]
here and inverted when weighted, since a lower claim ratio is better.
"""

import math
from typing import Any, Optional, Union

import pydantic

from carrier_engine.core.errors import DuplicatePeriodError, ValidationError
from carrier_engine.data.models.scorecard import NormalizedMetrics, RawMetrics
from carrier_engine.data.store import CarrierStore
from carrier_engine.engine.base import BaseComponent

METRIC_FIELDS = (
    "on_time_pickup_pct",
    "on_time_delivery_pct",
    "communication_score",
    "claim_ratio",
    "doc_timeliness_pct",
    "acceptance_rate",
    "gps_compliance_pct",
)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def normalize_metrics(raw: RawMetrics) -> NormalizedMetrics:
    """
    Clamp raw metrics into [0, 100].

    Missing metrics become 0 and are listed in NormalizedMetrics.missing.

    Raises:
        ValidationError: If any metric is NaN
    """
    values: dict[str, float] = {}
    missing: list[str] = []
    for name in METRIC_FIELDS:
        value = getattr(raw, name)
        if value is None:
            missing.append(name)
            values[name] = 0.0
            continue
        if math.isnan(value):
            raise ValidationError(f"Metric {name} is not a number", details={"metric": name})
        values[name] = clamp(float(value))
    return NormalizedMetrics(**values, missing=tuple(missing))


class MetricNormalizer(BaseComponent):
    """
    Validates raw weekly inputs for one carrier/period.

    Scorecards are append-only, so a period that already has a scorecard is
    rejected before any scoring happens.
    """

    def __init__(self, store: Optional[CarrierStore] = None, **kwargs: Any) -> None:
        super().__init__(component_name="metric_normalizer", **kwargs)
        self.store = store

    def execute(
        self, carrier_id: str, period: str, raw: Union[RawMetrics, dict[str, Any]]
    ) -> NormalizedMetrics:
        """
        Normalize one carrier/period of raw metrics.

        Args:
            carrier_id: Carrier the metrics belong to
            period: Period identifier (e.g., "2026-W41")
            raw: RawMetrics or a dict with the same keys

        Returns:
            NormalizedMetrics ready for the scorecard calculator

        Raises:
            ValidationError: Malformed input or empty period
            DuplicatePeriodError: A scorecard already exists for this period
        """
        if not period or not period.strip():
            raise ValidationError("Period identifier is required", details={"carrier_id": carrier_id})

        if not isinstance(raw, RawMetrics):
            try:
                raw = RawMetrics.model_validate(raw)
            except pydantic.ValidationError as e:
                errors = e.errors(include_url=False, include_context=False)
                raise ValidationError(
                    "Malformed metric input",
                    details={"carrier_id": carrier_id, "period": period, "errors": errors},
                ) from e

        if self.store is not None and self.store.find_scorecard(carrier_id, period) is not None:
            raise DuplicatePeriodError(carrier_id, period)

        normalized = normalize_metrics(raw)
        if normalized.missing:
            self.logger.warning(
                "metrics_missing",
                carrier_id=carrier_id,
                period=period,
                missing=list(normalized.missing),
            )
        return normalized
