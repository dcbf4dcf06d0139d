"""
Carrier Matcher - ranks the approved carrier pool against one load.

This component:
- Pre-filters to approved carriers (onboarding APPROVED, status APPROVED or NEW)
- Scores each candidate on independent additive factors: equipment, region,
  performance, compliance, tier, source bonus and availability
- Keeps equipment matches that are not compliance RED, falling back to all
  equipment matches when that leaves nobody
- Flags suggest_dat when too few carriers survive, so dispatch can source
  outside the internal pool
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from time import time
from typing import Any, Optional, Protocol

from carrier_engine.core.config import MatchingConfig
from carrier_engine.data.models.carrier import CarrierProfile, CarrierSource, CarrierStatus, OnboardingStatus
from carrier_engine.data.models.load import Load
from carrier_engine.data.models.match import ComplianceStatus, MatchResponse, MatchResult, ScoreBreakdown
from carrier_engine.data.models.scorecard import Scorecard
from carrier_engine.data.regions import region_for_state
from carrier_engine.engine.base import BaseComponent, ComponentDecision
from carrier_engine.engine.compliance import ComplianceGate

ELIGIBLE_STATUSES = frozenset({CarrierStatus.APPROVED, CarrierStatus.NEW})


class AvailabilityStrategy(Protocol):
    """Availability factor; replaceable with real capacity data."""

    def score(self, carrier: CarrierProfile, load: Load) -> int: ...


class FlatAvailability:
    """Awards the same availability points to every candidate."""

    def __init__(self, points: int = 5) -> None:
        self.points = points

    def score(self, carrier: CarrierProfile, load: Load) -> int:
        return self.points


def is_eligible(carrier: CarrierProfile) -> bool:
    """Candidate pool membership."""
    return carrier.onboarding_status == OnboardingStatus.APPROVED and carrier.status in ELIGIBLE_STATUSES


def performance_points(scorecard: Optional[Scorecard], budget: int) -> int:
    """Latest overall score scaled onto the budget, rounded half-up."""
    if scorecard is None:
        return 0
    scaled = Decimal(str(scorecard.overall_score)) / Decimal("100") * budget
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _casefold_set(values: set[str]) -> set[str]:
    return {v.strip().casefold() for v in values}


class CarrierMatcher(BaseComponent):
    """
    Multi-factor carrier ranking for a single load.

    Scoring reads only the candidate and the load, so candidates can be
    scored in parallel; ranking is a sort over the scored list.
    """

    def __init__(
        self,
        compliance_gate: Optional[ComplianceGate] = None,
        availability: Optional[AvailabilityStrategy] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the carrier matcher."""
        super().__init__(component_name="carrier_matcher", **kwargs)
        self.compliance_gate = compliance_gate or ComplianceGate(
            config_manager=self.config_manager, logger=self.logger
        )
        self.availability = availability or FlatAvailability(self.matching_config.points.availability)

    @property
    def matching_config(self) -> MatchingConfig:
        return self.engine_config.matching

    def score_candidate(
        self,
        carrier: CarrierProfile,
        load: Load,
        scorecard: Optional[Scorecard],
        now: Optional[datetime] = None,
    ) -> MatchResult:
        """
        Score one carrier against a load.

        Args:
            carrier: Candidate carrier
            load: Load being matched
            scorecard: Carrier's latest scorecard, if any
            now: Reference time for the compliance check

        Returns:
            MatchResult with the per-factor breakdown
        """
        points = self.matching_config.points

        equipment_match = load.equipment_type.strip().casefold() in _casefold_set(carrier.equipment_types)
        load_region = region_for_state(load.origin_state)
        region_match = load_region.casefold() in _casefold_set(carrier.operating_regions)
        compliance_status = self.compliance_gate.status(carrier, now=now)

        breakdown = ScoreBreakdown(
            equipment=points.equipment if equipment_match else 0,
            region=points.region if region_match else 0,
            performance=performance_points(scorecard, points.performance),
            compliance=points.compliance if compliance_status != ComplianceStatus.RED else 0,
            tier=points.tier.get(carrier.tier.value, 0),
            source_bonus=points.source_bonus if carrier.is_network_sourced else 0,
            availability=self.availability.score(carrier, load),
        )

        return MatchResult(
            carrier_id=carrier.carrier_id,
            company_name=carrier.company_name,
            mc_number=carrier.mc_number,
            dot_number=carrier.dot_number,
            tier=carrier.tier,
            source=carrier.source or CarrierSource.NETWORK,
            overall_score=scorecard.overall_score if scorecard else 0.0,
            safety_score=carrier.safety_score,
            emergency_approved=carrier.emergency_approved,
            equipment_match=equipment_match,
            compliance_status=compliance_status,
            breakdown=breakdown,
        )

    def rank(self, scored: list[MatchResult]) -> tuple[list[MatchResult], bool]:
        """
        Apply the two-pass filter and sort.

        Returns:
            (matches, fallback_used)
        """
        limit = self.matching_config.max_results

        def ordered(results: list[MatchResult]) -> list[MatchResult]:
            # Ties broken by carrier id so ranking never depends on pool order
            return sorted(results, key=lambda r: (-r.match_score, r.carrier_id))[:limit]

        primary = ordered(
            [r for r in scored if r.equipment_match and r.compliance_status != ComplianceStatus.RED]
        )
        if primary:
            return primary, False
        return ordered([r for r in scored if r.equipment_match]), True

    def execute(
        self,
        load: Load,
        carriers: list[CarrierProfile],
        latest_scorecards: dict[str, Scorecard],
        now: Optional[datetime] = None,
    ) -> MatchResponse:
        """
        Rank a carrier pool against a load.

        Args:
            load: Load to match
            carriers: Carrier directory snapshot (filtered to the eligible pool here)
            latest_scorecards: Latest scorecard per carrier id
            now: Reference time for compliance checks

        Returns:
            MatchResponse; an empty pool gives no matches and suggest_dat=True
        """
        start_time = time()
        now = now or datetime.now(timezone.utc)

        pool = [c for c in carriers if is_eligible(c)]
        self.logger.info("match_started", load_id=load.load_id, candidates=len(pool))

        def score(carrier: CarrierProfile) -> MatchResult:
            return self.score_candidate(carrier, load, latest_scorecards.get(carrier.carrier_id), now=now)

        workers = self.matching_config.parallel_workers
        if workers > 1 and len(pool) > 1:
            with ThreadPoolExecutor(max_workers=workers) as executor:
                scored = list(executor.map(score, pool))
        else:
            scored = [score(c) for c in pool]

        matches, fallback_used = self.rank(scored)
        suggest_dat = len(matches) < self.matching_config.suggest_dat_below

        response = MatchResponse(
            load_id=load.load_id,
            matches=matches,
            total_candidates=len(pool),
            fallback_used=fallback_used,
            suggest_dat=suggest_dat,
        )

        if fallback_used and matches:
            reasoning = "No compliant equipment matches; fell back to equipment matches"
        elif matches:
            reasoning = "Ranked compliant equipment matches"
        else:
            reasoning = "No equipment matches in the approved pool"

        self.log_decision(
            ComponentDecision(
                timestamp=now,
                component_name=self.component_name,
                decision_type="carrier_match",
                input_data={"load_id": load.load_id, "equipment_type": load.equipment_type},
                reasoning=reasoning,
                output_data={
                    "matches": [m.carrier_id for m in matches],
                    "fallback_used": fallback_used,
                    "suggest_dat": suggest_dat,
                },
                execution_time_seconds=time() - start_time,
            )
        )
        self.logger.info(
            "match_completed",
            load_id=load.load_id,
            total_candidates=len(pool),
            matches_count=len(matches),
            top_score=matches[0].match_score if matches else 0,
            suggest_dat=suggest_dat,
        )
        return response
