"""
Tier resolution - carrier standing over GUEST < BRONZE < SILVER < GOLD < PLATINUM.

This component:
- Assigns the initial tier at onboarding (GUEST for imported leads, BRONZE
  for carriers approved directly into the network)
- Recomputes a carrier's tier from its scorecard history, safety score and
  compliance status against configured thresholds
- Promotes on the latest scorecard but demotes only when a whole window of
  recent scorecards falls below the current tier
- Applies manual overrides (GUEST -> BRONZE promotion, emergency approval)
- Records every transition for audit
"""

from datetime import datetime, timezone
from time import time
from typing import Any, Optional

from pydantic import BaseModel

from carrier_engine.core.config import TierConfig
from carrier_engine.core.errors import PolicyViolationError
from carrier_engine.data.models.carrier import (
    CarrierProfile,
    CarrierSource,
    CarrierStatus,
    FmcsaVerification,
    OnboardingStatus,
    Tier,
    TierTransition,
    TransitionTrigger,
)
from carrier_engine.data.models.match import ComplianceStatus
from carrier_engine.data.models.scorecard import Scorecard
from carrier_engine.data.store import CarrierStore
from carrier_engine.engine.base import BaseComponent, ComponentDecision
from carrier_engine.engine.compliance import ComplianceGate

SCORED_TIERS = (Tier.PLATINUM, Tier.GOLD, Tier.SILVER)


class TierDecision(BaseModel):
    """Outcome of a tier recomputation."""

    carrier_id: str
    previous_tier: Tier
    new_tier: Tier
    reason: str
    scorecard_id: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.previous_tier != self.new_tier


def tier_for_score(overall_score: float, thresholds: dict[str, float]) -> Tier:
    """Highest tier whose minimum score is met; BRONZE otherwise."""
    for tier in SCORED_TIERS:
        minimum = thresholds.get(tier.value)
        if minimum is not None and overall_score >= minimum:
            return tier
    return Tier.BRONZE


def initial_tier(profile: CarrierProfile) -> Tier:
    """Imported leads start as GUEST; approved network carriers start at BRONZE."""
    if not profile.is_network_sourced:
        return Tier.GUEST
    if profile.onboarding_status == OnboardingStatus.APPROVED:
        return Tier.BRONZE
    return Tier.GUEST


def _require_justification(operator_id: str, reason: Optional[str], action: str) -> str:
    if not operator_id or not operator_id.strip():
        raise PolicyViolationError(f"{action} requires an operator id")
    if reason is None or not reason.strip():
        raise PolicyViolationError(
            f"{action} requires a justification", details={"operator_id": operator_id}
        )
    return reason.strip()


class TierResolver(BaseComponent):
    """
    Tier state machine backed by the carrier store.

    resolve() is pure; execute() and the override methods write through the
    store together with their audit record.
    """

    def __init__(
        self,
        store: CarrierStore,
        compliance_gate: Optional[ComplianceGate] = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the tier resolver."""
        super().__init__(component_name="tier_resolver", **kwargs)
        self.store = store
        self.compliance_gate = compliance_gate or ComplianceGate(
            config_manager=self.config_manager, logger=self.logger
        )

    @property
    def tier_config(self) -> TierConfig:
        return self.engine_config.tiers

    # Pure resolution

    def supported_tier(
        self,
        scorecard: Scorecard,
        carrier: CarrierProfile,
        compliance_status: ComplianceStatus,
    ) -> Tier:
        """Tier one scorecard supports, after safety and compliance caps."""
        tier = tier_for_score(scorecard.overall_score, self.tier_config.thresholds)

        # Step down until the safety minimum for the tier is met
        while tier in SCORED_TIERS:
            minimum = self.tier_config.min_safety_score.get(tier.value)
            if minimum is None or (carrier.safety_score is not None and carrier.safety_score >= minimum):
                break
            below = SCORED_TIERS.index(tier) + 1
            tier = SCORED_TIERS[below] if below < len(SCORED_TIERS) else Tier.BRONZE

        if compliance_status == ComplianceStatus.RED and tier > Tier.BRONZE:
            tier = Tier.BRONZE
        return tier

    def resolve(
        self,
        carrier: CarrierProfile,
        history: list[Scorecard],
        compliance_status: ComplianceStatus,
    ) -> TierDecision:
        """
        Decide a carrier's tier from its scorecard history.

        Args:
            carrier: Carrier profile snapshot
            history: Scorecards, oldest first
            compliance_status: Current ComplianceGate status

        Returns:
            TierDecision (new_tier equals previous_tier when nothing changes)
        """
        current = carrier.tier

        def keep(reason: str, scorecard_id: Optional[str] = None) -> TierDecision:
            return TierDecision(
                carrier_id=carrier.carrier_id,
                previous_tier=current,
                new_tier=current,
                reason=reason,
                scorecard_id=scorecard_id,
            )

        if not history:
            return keep("No scorecards on record")

        latest = history[-1]

        if current == Tier.GUEST:
            required = self.tier_config.guest_min_scorecards
            if len(history) < required:
                return keep(f"Guest has {len(history)} of {required} scorecards", latest.scorecard_id)
            recent = history[-required:]
            average = sum(s.overall_score for s in recent) / len(recent)
            if average >= self.tier_config.guest_min_average:
                return TierDecision(
                    carrier_id=carrier.carrier_id,
                    previous_tier=current,
                    new_tier=Tier.BRONZE,
                    reason=f"Guest graduated: average {average:.2f} over last {required} scorecards",
                    scorecard_id=latest.scorecard_id,
                )
            return keep(
                f"Guest average {average:.2f} below {self.tier_config.guest_min_average}",
                latest.scorecard_id,
            )

        target = self.supported_tier(latest, carrier, compliance_status)
        if target > current:
            return TierDecision(
                carrier_id=carrier.carrier_id,
                previous_tier=current,
                new_tier=target,
                reason=f"Promoted on score {latest.overall_score}",
                scorecard_id=latest.scorecard_id,
            )
        if target == current:
            return keep(f"Score {latest.overall_score} holds {current.value}", latest.scorecard_id)

        # Demotion needs the whole window below the current tier
        window_size = self.tier_config.demotion_window
        if len(history) < window_size:
            return keep("Not enough history to demote", latest.scorecard_id)
        window = history[-window_size:]
        targets = [self.supported_tier(s, carrier, compliance_status) for s in window]
        if any(t >= current for t in targets):
            return keep(f"Single-period dip ignored (window of {window_size})", latest.scorecard_id)
        return TierDecision(
            carrier_id=carrier.carrier_id,
            previous_tier=current,
            new_tier=max(targets),
            reason=f"Demoted: last {window_size} scorecards below {current.value}",
            scorecard_id=latest.scorecard_id,
        )

    # Store-backed operations

    def execute(self, carrier_id: str, now: Optional[datetime] = None) -> TierDecision:
        """
        Recompute and persist one carrier's tier.

        Args:
            carrier_id: Carrier to recompute
            now: Reference time for the compliance check

        Returns:
            TierDecision

        Raises:
            NotFoundError: If the carrier does not exist
        """
        start_time = time()
        now = now or datetime.now(timezone.utc)

        # Read, resolve and write under one lock so a concurrent override is not overwritten
        with self.store.transaction():
            carrier = self.store.get_carrier(carrier_id)
            history = self.store.scorecards_for(carrier_id)
            compliance_status = self.compliance_gate.status(carrier, now=now)
            decision = self.resolve(carrier, history, compliance_status)

            if decision.changed:
                carrier.tier = decision.new_tier
                self.store.update_carrier(carrier)
                self.store.record_transition(
                    TierTransition(
                        carrier_id=carrier_id,
                        from_tier=decision.previous_tier,
                        to_tier=decision.new_tier,
                        trigger=TransitionTrigger.AUTOMATIC,
                        occurred_at=now,
                        scorecard_id=decision.scorecard_id,
                        reason=decision.reason,
                    )
                )

        if decision.changed:
            self.logger.info(
                "tier_changed",
                carrier_id=carrier_id,
                from_tier=decision.previous_tier.value,
                to_tier=decision.new_tier.value,
                scorecard_id=decision.scorecard_id,
            )

        self.log_decision(
            ComponentDecision(
                timestamp=now,
                component_name=self.component_name,
                decision_type="tier_recalculation",
                input_data={
                    "carrier_id": carrier_id,
                    "scorecards": len(history),
                    "compliance_status": compliance_status.value,
                },
                reasoning=decision.reason,
                output_data={"previous_tier": decision.previous_tier.value, "new_tier": decision.new_tier.value},
                execution_time_seconds=time() - start_time,
            )
        )
        return decision

    def recalculate_all(self, now: Optional[datetime] = None) -> list[TierDecision]:
        """Recompute every approved carrier; returns only the changes."""
        approved = self.store.list_carriers(
            lambda c: c.onboarding_status == OnboardingStatus.APPROVED
        )
        changes = []
        for carrier in approved:
            decision = self.execute(carrier.carrier_id, now=now)
            if decision.changed:
                changes.append(decision)
        self.logger.info("tiers_recalculated", total_carriers=len(approved), tiers_updated=len(changes))
        return changes

    def onboard(
        self,
        profile: CarrierProfile,
        verification: Optional[FmcsaVerification] = None,
        now: Optional[datetime] = None,
    ) -> CarrierProfile:
        """
        Register a new carrier and assign its initial tier.

        An FMCSA verification result, when given, approves or rejects the
        carrier before the tier is chosen.
        """
        now = now or datetime.now(timezone.utc)
        profile = profile.model_copy(deep=True)

        if verification is not None:
            profile.fmcsa_authority_status = verification.operating_status
            if verification.verified:
                profile.onboarding_status = OnboardingStatus.APPROVED
                profile.status = CarrierStatus.APPROVED
                profile.approved_at = now
                profile.safety_rating = verification.safety_rating
                if verification.legal_name:
                    profile.company_name = verification.legal_name
            else:
                profile.onboarding_status = OnboardingStatus.REJECTED
                profile.status = CarrierStatus.REJECTED
                profile.notes = "FMCSA verification failed: " + ", ".join(verification.errors)

        profile.tier = initial_tier(profile)
        with self.store.transaction():
            self.store.add_carrier(profile)
            self.store.record_transition(
                TierTransition(
                    carrier_id=profile.carrier_id,
                    from_tier=profile.tier,
                    to_tier=profile.tier,
                    trigger=TransitionTrigger.ONBOARDING,
                    occurred_at=now,
                    reason=f"Onboarded via {(profile.source or CarrierSource.NETWORK).value}",
                )
            )

        self.logger.info(
            "carrier_onboarded",
            carrier_id=profile.carrier_id,
            tier=profile.tier.value,
            onboarding_status=profile.onboarding_status.value,
        )
        return profile

    def promote_guest(
        self,
        carrier_id: str,
        operator_id: str,
        reason: Optional[str],
        now: Optional[datetime] = None,
    ) -> CarrierProfile:
        """
        Force-promote a GUEST carrier to BRONZE without consulting its score.

        Raises:
            NotFoundError: If the carrier does not exist
            PolicyViolationError: Missing operator/justification, or carrier is not GUEST
        """
        reason = _require_justification(operator_id, reason, "Guest promotion")
        now = now or datetime.now(timezone.utc)

        with self.store.transaction():
            carrier = self.store.get_carrier(carrier_id)
            if carrier.tier != Tier.GUEST:
                raise PolicyViolationError(
                    f"Carrier {carrier_id} is not a Guest tier",
                    details={"carrier_id": carrier_id, "tier": carrier.tier.value},
                )
            carrier.tier = Tier.BRONZE
            carrier.source = CarrierSource.NETWORK
            self.store.update_carrier(carrier)
            self.store.record_transition(
                TierTransition(
                    carrier_id=carrier_id,
                    from_tier=Tier.GUEST,
                    to_tier=Tier.BRONZE,
                    trigger=TransitionTrigger.MANUAL_PROMOTION,
                    occurred_at=now,
                    operator_id=operator_id,
                    reason=reason,
                )
            )

        self.logger.info("guest_promoted", carrier_id=carrier_id, operator_id=operator_id)
        return carrier

    def emergency_approve(
        self,
        carrier_id: str,
        operator_id: str,
        reason: Optional[str],
        now: Optional[datetime] = None,
    ) -> CarrierProfile:
        """
        Approve a carrier regardless of automated checks.

        Raises:
            NotFoundError: If the carrier does not exist
            PolicyViolationError: Missing operator or justification
        """
        reason = _require_justification(operator_id, reason, "Emergency approval")
        now = now or datetime.now(timezone.utc)

        with self.store.transaction():
            carrier = self.store.get_carrier(carrier_id)
            carrier.onboarding_status = OnboardingStatus.APPROVED
            carrier.status = CarrierStatus.APPROVED
            carrier.approved_at = now
            carrier.emergency_approved = True
            carrier.emergency_approve_reason = reason
            carrier.emergency_approved_by = operator_id
            carrier.emergency_approved_at = now
            self.store.update_carrier(carrier)
            self.store.record_transition(
                TierTransition(
                    carrier_id=carrier_id,
                    from_tier=carrier.tier,
                    to_tier=carrier.tier,
                    trigger=TransitionTrigger.EMERGENCY_APPROVAL,
                    occurred_at=now,
                    operator_id=operator_id,
                    reason=reason,
                )
            )

        self.logger.warning("carrier_emergency_approved", carrier_id=carrier_id, operator_id=operator_id)
        return carrier

    def next_tier_info(self, tier: Tier, overall_score: float) -> dict[str, Any]:
        """Next tier above `tier` and the points still needed to reach it."""
        if tier == Tier.GUEST:
            return {
                "next_tier": Tier.BRONZE,
                "min_score": self.tier_config.guest_min_average,
                "points_needed": max(0.0, self.tier_config.guest_min_average - overall_score),
                "requirement": (
                    f"Complete {self.tier_config.guest_min_scorecards} scorecards "
                    f"with average score >= {self.tier_config.guest_min_average:g}"
                ),
            }
        if tier == Tier.PLATINUM:
            return {"next_tier": None, "min_score": None, "points_needed": 0.0, "requirement": "Highest tier achieved"}

        next_tier = list(Tier)[tier.rank + 1]
        minimum = self.tier_config.thresholds.get(next_tier.value, 100.0)
        return {
            "next_tier": next_tier,
            "min_score": minimum,
            "points_needed": round(max(0.0, minimum - overall_score), 2),
            "requirement": f"Maintain overall score >= {minimum:g}",
        }
