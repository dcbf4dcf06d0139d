"""
Carrier engine facade - the operations exposed to collaborators.

- match_load(load_id): ranked matches plus suggest_dat
- compute_scorecard(carrier_id, period, raw_metrics): persisted Scorecard
- promote_guest / emergency_approve(carrier_id, operator_id, reason): tier overrides
"""

from datetime import datetime, timezone
from typing import Any, Optional, Union

import structlog

from carrier_engine.core.config import ConfigManager, get_config
from carrier_engine.core.errors import ConflictError, DuplicatePeriodError
from carrier_engine.data.models.carrier import CarrierProfile, FmcsaVerification
from carrier_engine.data.models.match import ComplianceReport, MatchResponse
from carrier_engine.data.models.scorecard import RawMetrics, Scorecard
from carrier_engine.data.store import CarrierStore
from carrier_engine.engine.compliance import ComplianceGate
from carrier_engine.engine.matcher import AvailabilityStrategy, CarrierMatcher
from carrier_engine.engine.metrics import MetricNormalizer
from carrier_engine.engine.scorecard import ScorecardCalculator
from carrier_engine.engine.tiers import TierDecision, TierResolver


class CarrierEngine:
    """Wires the scoring components to a carrier store."""

    def __init__(
        self,
        store: Optional[CarrierStore] = None,
        config_manager: Optional[ConfigManager] = None,
        availability: Optional[AvailabilityStrategy] = None,
        logger: Optional[structlog.BoundLogger] = None,
    ) -> None:
        self.config_manager = config_manager or get_config()
        self.logger = logger or structlog.get_logger(component="carrier_engine")
        self.store = store or CarrierStore()

        shared: dict[str, Any] = {"config_manager": self.config_manager}
        self.compliance_gate = ComplianceGate(**shared)
        self.normalizer = MetricNormalizer(store=self.store, **shared)
        self.calculator = ScorecardCalculator(**shared)
        self.tier_resolver = TierResolver(self.store, compliance_gate=self.compliance_gate, **shared)
        self.matcher = CarrierMatcher(
            compliance_gate=self.compliance_gate, availability=availability, **shared
        )

    def match_load(self, load_id: str, now: Optional[datetime] = None) -> MatchResponse:
        """
        Rank the approved carrier pool for a load.

        Raises:
            NotFoundError: If the load does not exist
        """
        load = self.store.get_load(load_id)
        carriers = self.store.list_carriers()
        latest: dict[str, Scorecard] = {}
        for carrier in carriers:
            scorecard = self.store.latest_scorecard(carrier.carrier_id)
            if scorecard is not None:
                latest[carrier.carrier_id] = scorecard
        return self.matcher.execute(load, carriers, latest, now=now)

    def compute_scorecard(
        self,
        carrier_id: str,
        period: str,
        raw_metrics: Union[RawMetrics, dict[str, Any]],
        calculated_at: Optional[datetime] = None,
    ) -> Scorecard:
        """
        Normalize, score and append a scorecard for one carrier/period.

        The carrier's current tier is recorded on the scorecard and drives the
        bonus; the tier itself is not changed here.

        Raises:
            NotFoundError: Unknown carrier
            ValidationError: Malformed metrics
            DuplicatePeriodError: The period already has a scorecard
            ConflictError: A concurrent insert won twice in a row
        """
        carrier = self.store.get_carrier(carrier_id)
        metrics = self.normalizer.execute(carrier_id, period, raw_metrics)
        scorecard = self.calculator.execute(
            carrier_id, period, metrics, carrier.tier, calculated_at=calculated_at
        )

        try:
            self.store.insert_scorecard(scorecard)
        except ConflictError:
            # Lost a race: re-check once, then retry the insert a single time
            if self.store.find_scorecard(carrier_id, period) is not None:
                raise DuplicatePeriodError(carrier_id, period)
            self.logger.warning("scorecard_insert_retry", carrier_id=carrier_id, period=period)
            self.store.insert_scorecard(scorecard)

        self.logger.info(
            "scorecard_computed",
            carrier_id=carrier_id,
            period=period,
            overall_score=scorecard.overall_score,
            tier_at_time=scorecard.tier_at_time.value,
            bonus_earned=str(scorecard.bonus_earned),
        )
        return scorecard

    def promote_guest(self, carrier_id: str, operator_id: str, reason: Optional[str]) -> CarrierProfile:
        return self.tier_resolver.promote_guest(carrier_id, operator_id, reason)

    def emergency_approve(self, carrier_id: str, operator_id: str, reason: Optional[str]) -> CarrierProfile:
        return self.tier_resolver.emergency_approve(carrier_id, operator_id, reason)

    def recalculate_tier(self, carrier_id: str, now: Optional[datetime] = None) -> TierDecision:
        return self.tier_resolver.execute(carrier_id, now=now)

    def recalculate_all_tiers(self, now: Optional[datetime] = None) -> list[TierDecision]:
        return self.tier_resolver.recalculate_all(now=now)

    def onboard_carrier(
        self,
        profile: CarrierProfile,
        verification: Optional[FmcsaVerification] = None,
    ) -> CarrierProfile:
        return self.tier_resolver.onboard(profile, verification=verification)

    def compliance_status(self, carrier_id: str, now: Optional[datetime] = None) -> ComplianceReport:
        """Current compliance report for a carrier (never cached)."""
        carrier = self.store.get_carrier(carrier_id)
        return self.compliance_gate.execute(carrier, now=now or datetime.now(timezone.utc))
