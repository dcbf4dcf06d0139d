"""
Scorecard calculation - weighted overall score and bonus for one period.

    overall = 0.20*onTimePickup + 0.20*onTimeDelivery + 0.10*communication
            + 0.15*(100-claimRatio) + 0.10*docTimeliness
            + 0.10*acceptanceRate + 0.15*gpsCompliance

Weights come from configuration and must sum to 1.0. Arithmetic is done in
Decimal and rounded half-up to 2 decimal places, so 98.675 becomes 98.68.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from time import time
from typing import Any, Optional
from uuid import uuid4

from carrier_engine.core.config import ScoringConfig, ScoringWeights
from carrier_engine.data.models.carrier import Tier
from carrier_engine.data.models.scorecard import NormalizedMetrics, Scorecard
from carrier_engine.engine.base import BaseComponent, ComponentDecision
from carrier_engine.engine.compliance import as_utc

HUNDRED = Decimal("100")
TWO_PLACES = Decimal("0.01")


def _dec(value: float) -> Decimal:
    return Decimal(str(value))


def calculate_overall_score(metrics: NormalizedMetrics, weights: ScoringWeights) -> float:
    """
    Weighted linear combination of the seven sub-metrics.

    Returns:
        Overall score in [0, 100], rounded half-up to 2 decimal places
    """
    score = (
        _dec(metrics.on_time_pickup_pct) * weights.on_time_pickup
        + _dec(metrics.on_time_delivery_pct) * weights.on_time_delivery
        + _dec(metrics.communication_score) * weights.communication
        + (HUNDRED - _dec(metrics.claim_ratio)) * weights.claim_ratio
        + _dec(metrics.doc_timeliness_pct) * weights.doc_timeliness
        + _dec(metrics.acceptance_rate) * weights.acceptance_rate
        + _dec(metrics.gps_compliance_pct) * weights.gps_compliance
    )
    score = max(Decimal("0"), min(HUNDRED, score))
    return float(score.quantize(TWO_PLACES, rounding=ROUND_HALF_UP))


def bonus_for_tier(tier: Tier, bonus_amounts: dict[str, Decimal]) -> Decimal:
    """Flat bonus attached to a scorecard by the tier in effect at calculation."""
    return Decimal(bonus_amounts.get(tier.value, Decimal("0")))


class ScorecardCalculator(BaseComponent):
    """
    Produces one immutable Scorecard from normalized metrics.

    Does not persist the scorecard or touch the carrier's current tier.
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize the scorecard calculator."""
        super().__init__(component_name="scorecard_calculator", **kwargs)

    @property
    def scoring_config(self) -> ScoringConfig:
        return self.engine_config.scoring

    def execute(
        self,
        carrier_id: str,
        period: str,
        metrics: NormalizedMetrics,
        tier: Tier,
        calculated_at: Optional[datetime] = None,
    ) -> Scorecard:
        """
        Compute the scorecard for one carrier/period.

        Args:
            carrier_id: Carrier being scored
            period: Period identifier
            metrics: Output of the metric normalizer
            tier: Tier in effect at calculation time; drives the bonus
            calculated_at: Calculation timestamp (defaults to now, UTC)

        Returns:
            Unsaved Scorecard
        """
        start_time = time()

        overall = calculate_overall_score(metrics, self.scoring_config.weights)
        bonus = bonus_for_tier(tier, self.scoring_config.bonus_amounts)

        scorecard = Scorecard(
            scorecard_id=f"SC-{uuid4().hex[:12]}",
            carrier_id=carrier_id,
            period=period,
            on_time_pickup_pct=metrics.on_time_pickup_pct,
            on_time_delivery_pct=metrics.on_time_delivery_pct,
            communication_score=metrics.communication_score,
            claim_ratio=metrics.claim_ratio,
            doc_timeliness_pct=metrics.doc_timeliness_pct,
            acceptance_rate=metrics.acceptance_rate,
            gps_compliance_pct=metrics.gps_compliance_pct,
            overall_score=overall,
            tier_at_time=tier,
            bonus_earned=bonus,
            calculated_at=as_utc(calculated_at) if calculated_at else datetime.now(timezone.utc),
        )

        reasoning = f"Weighted score {overall} at tier {tier.value}"
        if metrics.missing:
            # Degraded score: missing metrics counted as 0
            reasoning += f"; missing metrics scored as 0: {', '.join(metrics.missing)}"

        self.log_decision(
            ComponentDecision(
                timestamp=datetime.now(timezone.utc),
                component_name=self.component_name,
                decision_type="scorecard_calculation",
                input_data={"carrier_id": carrier_id, "period": period, "tier": tier.value},
                reasoning=reasoning,
                output_data={"overall_score": overall, "bonus_earned": str(bonus)},
                execution_time_seconds=time() - start_time,
            )
        )
        return scorecard
