"""
Tier resolver tests: thresholds, anti-flapping demotion, guest graduation,
manual overrides and audit records.

Run: pytest tests/test_tiers.py -v
"""

import threading
from datetime import timedelta

import pytest

from carrier_engine.core.config import ConfigManager
from carrier_engine.core.errors import NotFoundError, PolicyViolationError
from carrier_engine.data.models import (
    CarrierSource,
    CarrierStatus,
    ComplianceStatus,
    FmcsaVerification,
    OnboardingStatus,
    Tier,
    TransitionTrigger,
)
from carrier_engine.engine.tiers import TierResolver, initial_tier, tier_for_score

THRESHOLDS = {"PLATINUM": 98.0, "GOLD": 95.0, "SILVER": 90.0}


@pytest.fixture
def resolver(store, config_manager) -> TierResolver:
    return TierResolver(store, config_manager=config_manager)


def _history(scorecard_factory, carrier_id, scores):
    count = len(scores)
    return [
        scorecard_factory(carrier_id, score, f"P{i}", days_ago=count - i)
        for i, score in enumerate(scores)
    ]


# ==================== Ordering and thresholds ====================


def test_tier_total_order():
    assert Tier.GUEST < Tier.BRONZE < Tier.SILVER < Tier.GOLD < Tier.PLATINUM
    assert max([Tier.SILVER, Tier.PLATINUM, Tier.BRONZE]) == Tier.PLATINUM
    # Not alphabetical
    assert Tier.GOLD > Tier.BRONZE and Tier.PLATINUM > Tier.GOLD


@pytest.mark.parametrize(
    "score,expected",
    [
        (100, Tier.PLATINUM),
        (98, Tier.PLATINUM),
        (97.99, Tier.GOLD),
        (95, Tier.GOLD),
        (90, Tier.SILVER),
        (89.99, Tier.BRONZE),
        (0, Tier.BRONZE),
    ],
)
def test_tier_for_score(score, expected):
    assert tier_for_score(score, THRESHOLDS) == expected


def test_initial_tier(carrier_factory):
    assert initial_tier(carrier_factory(source=CarrierSource.DAT)) == Tier.GUEST
    assert initial_tier(carrier_factory(source=CarrierSource.LEAD_IMPORT)) == Tier.GUEST
    assert initial_tier(carrier_factory(source=CarrierSource.NETWORK)) == Tier.BRONZE
    assert initial_tier(carrier_factory(source=None)) == Tier.BRONZE
    pending = carrier_factory(onboarding_status=OnboardingStatus.PENDING)
    assert initial_tier(pending) == Tier.GUEST


# ==================== Resolution ====================


def test_no_history_keeps_tier(resolver, carrier_factory):
    decision = resolver.resolve(carrier_factory(tier=Tier.SILVER), [], ComplianceStatus.GREEN)
    assert not decision.changed


def test_promotion_from_latest_scorecard(resolver, carrier_factory, scorecard_factory):
    carrier = carrier_factory(tier=Tier.BRONZE)
    history = _history(scorecard_factory, carrier.carrier_id, [85.0, 96.0])
    decision = resolver.resolve(carrier, history, ComplianceStatus.GREEN)
    assert decision.new_tier == Tier.GOLD
    assert decision.scorecard_id == history[-1].scorecard_id


def test_single_bad_period_does_not_demote(resolver, carrier_factory, scorecard_factory):
    carrier = carrier_factory(tier=Tier.GOLD)
    history = _history(scorecard_factory, carrier.carrier_id, [96.0, 96.5, 80.0])
    decision = resolver.resolve(carrier, history, ComplianceStatus.GREEN)
    assert decision.new_tier == Tier.GOLD
    assert not decision.changed


def test_sustained_drop_demotes_to_best_recent_tier(resolver, carrier_factory, scorecard_factory):
    carrier = carrier_factory(tier=Tier.PLATINUM)
    history = _history(scorecard_factory, carrier.carrier_id, [99.0, 91.0, 96.0])
    decision = resolver.resolve(carrier, history, ComplianceStatus.GREEN)
    # Window is the last two scorecards: SILVER and GOLD
    assert decision.new_tier == Tier.GOLD


def test_first_scorecard_alone_cannot_demote(resolver, carrier_factory, scorecard_factory):
    carrier = carrier_factory(tier=Tier.SILVER)
    history = _history(scorecard_factory, carrier.carrier_id, [50.0])
    assert not resolver.resolve(carrier, history, ComplianceStatus.GREEN).changed


def test_red_compliance_caps_promotion(resolver, carrier_factory, scorecard_factory):
    carrier = carrier_factory(tier=Tier.BRONZE)
    history = _history(scorecard_factory, carrier.carrier_id, [99.0])
    decision = resolver.resolve(carrier, history, ComplianceStatus.RED)
    assert decision.new_tier == Tier.BRONZE


def test_safety_minimum_steps_tier_down(tmp_path, store, carrier_factory, scorecard_factory):
    (tmp_path / "config.yaml").write_text(
        "tiers:\n  min_safety_score:\n    PLATINUM: 95\n    GOLD: 85\n"
    )
    resolver = TierResolver(store, config_manager=ConfigManager(config_dir=tmp_path))
    carrier = carrier_factory(tier=Tier.BRONZE, safety_score=88.0)
    history = _history(scorecard_factory, carrier.carrier_id, [99.0])
    assert resolver.resolve(carrier, history, ComplianceStatus.GREEN).new_tier == Tier.GOLD

    unrated = carrier_factory(tier=Tier.BRONZE, safety_score=None)
    assert resolver.resolve(unrated, history, ComplianceStatus.GREEN).new_tier == Tier.SILVER


def test_guest_graduates_after_enough_good_scorecards(resolver, carrier_factory, scorecard_factory):
    carrier = carrier_factory(tier=Tier.GUEST, source=CarrierSource.DAT)

    two = _history(scorecard_factory, carrier.carrier_id, [99.0, 99.0])
    assert resolver.resolve(carrier, two, ComplianceStatus.GREEN).new_tier == Tier.GUEST

    three = _history(scorecard_factory, carrier.carrier_id, [65.0, 72.0, 75.0])
    decision = resolver.resolve(carrier, three, ComplianceStatus.GREEN)
    # Graduation goes to BRONZE only, even on high scores
    assert decision.new_tier == Tier.BRONZE

    weak = _history(scorecard_factory, carrier.carrier_id, [60.0, 65.0, 70.0])
    assert resolver.resolve(carrier, weak, ComplianceStatus.GREEN).new_tier == Tier.GUEST


# ==================== Store-backed recomputation ====================


def test_execute_persists_change_with_audit(resolver, store, carrier_factory, scorecard_factory, now):
    store.add_carrier(carrier_factory("CAR-1", tier=Tier.BRONZE))
    for scorecard in _history(scorecard_factory, "CAR-1", [92.0]):
        store.insert_scorecard(scorecard)

    decision = resolver.execute("CAR-1", now=now)

    assert decision.new_tier == Tier.SILVER
    assert store.get_carrier("CAR-1").tier == Tier.SILVER
    [transition] = store.transitions_for("CAR-1")
    assert transition.trigger == TransitionTrigger.AUTOMATIC
    assert transition.scorecard_id == "SC-CAR-1-P0"
    assert transition.from_tier == Tier.BRONZE and transition.to_tier == Tier.SILVER


def test_execute_without_change_writes_nothing(resolver, store, carrier_factory, now):
    store.add_carrier(carrier_factory("CAR-1", tier=Tier.SILVER))
    assert not resolver.execute("CAR-1", now=now).changed
    assert store.transitions_for("CAR-1") == []


def test_execute_unknown_carrier(resolver):
    with pytest.raises(NotFoundError):
        resolver.execute("NOPE")


def test_recalculate_all_skips_unapproved(resolver, store, carrier_factory, scorecard_factory, now):
    store.add_carrier(carrier_factory("CAR-1", tier=Tier.BRONZE))
    store.add_carrier(
        carrier_factory("CAR-2", tier=Tier.BRONZE, onboarding_status=OnboardingStatus.UNDER_REVIEW)
    )
    store.insert_scorecard(scorecard_factory("CAR-1", 99.0, "P0"))
    store.insert_scorecard(scorecard_factory("CAR-2", 99.0, "P0"))

    changes = resolver.recalculate_all(now=now)

    assert [c.carrier_id for c in changes] == ["CAR-1"]
    assert store.get_carrier("CAR-2").tier == Tier.BRONZE


# ==================== Onboarding ====================


def test_onboard_verified_network_carrier(resolver, store, carrier_factory, now):
    profile = carrier_factory(
        "CAR-9",
        onboarding_status=OnboardingStatus.PENDING,
        status=CarrierStatus.NEW,
        tier=Tier.GUEST,
    )
    verification = FmcsaVerification(verified=True, safety_rating="SATISFACTORY", legal_name="Nine Freight LLC")

    onboarded = resolver.onboard(profile, verification=verification, now=now)

    assert onboarded.tier == Tier.BRONZE
    assert onboarded.onboarding_status == OnboardingStatus.APPROVED
    assert onboarded.company_name == "Nine Freight LLC"
    assert store.get_carrier("CAR-9").approved_at == now
    assert store.transitions_for("CAR-9")[0].trigger == TransitionTrigger.ONBOARDING


def test_onboard_failed_verification_rejects(resolver, carrier_factory, now):
    profile = carrier_factory("CAR-9", onboarding_status=OnboardingStatus.PENDING, status=CarrierStatus.NEW)
    verification = FmcsaVerification(verified=False, errors=["Authority inactive"])

    onboarded = resolver.onboard(profile, verification=verification, now=now)

    assert onboarded.onboarding_status == OnboardingStatus.REJECTED
    assert onboarded.status == CarrierStatus.REJECTED
    assert "Authority inactive" in onboarded.notes
    assert onboarded.tier == Tier.GUEST


def test_onboard_imported_lead_starts_as_guest(resolver, carrier_factory):
    onboarded = resolver.onboard(carrier_factory("CAR-9", source=CarrierSource.DAT))
    assert onboarded.tier == Tier.GUEST


# ==================== Manual overrides ====================


def test_promote_guest_to_bronze(resolver, store, carrier_factory, now):
    store.add_carrier(carrier_factory("CAR-1", tier=Tier.GUEST, source=CarrierSource.DAT))

    promoted = resolver.promote_guest("CAR-1", "OPS-7", "Vetted by account executive", now=now)

    assert promoted.tier == Tier.BRONZE
    assert store.get_carrier("CAR-1").source == CarrierSource.NETWORK
    [transition] = store.transitions_for("CAR-1")
    assert transition.trigger == TransitionTrigger.MANUAL_PROMOTION
    assert transition.operator_id == "OPS-7"
    assert transition.reason == "Vetted by account executive"
    assert transition.occurred_at == now


def test_promote_non_guest_is_policy_violation(resolver, store, carrier_factory):
    store.add_carrier(carrier_factory("CAR-1", tier=Tier.SILVER))
    with pytest.raises(PolicyViolationError):
        resolver.promote_guest("CAR-1", "OPS-7", "Because")
    assert store.get_carrier("CAR-1").tier == Tier.SILVER
    assert store.transitions_for("CAR-1") == []


@pytest.mark.parametrize("operator_id,reason", [("OPS-7", None), ("OPS-7", "   "), ("", "Urgent load")])
def test_overrides_require_operator_and_justification(resolver, store, carrier_factory, operator_id, reason):
    store.add_carrier(carrier_factory("CAR-1", tier=Tier.GUEST))
    with pytest.raises(PolicyViolationError):
        resolver.emergency_approve("CAR-1", operator_id, reason)
    with pytest.raises(PolicyViolationError):
        resolver.promote_guest("CAR-1", operator_id, reason)
    assert store.transitions_for("CAR-1") == []


def test_emergency_approve_records_operator(resolver, store, carrier_factory, now):
    store.add_carrier(
        carrier_factory(
            "CAR-1",
            onboarding_status=OnboardingStatus.UNDER_REVIEW,
            status=CarrierStatus.REVIEW,
        )
    )

    approved = resolver.emergency_approve("CAR-1", "ADMIN-1", "Produce load must move tonight", now=now)

    assert approved.onboarding_status == OnboardingStatus.APPROVED
    assert approved.status == CarrierStatus.APPROVED
    assert approved.emergency_approved is True
    assert approved.emergency_approved_by == "ADMIN-1"
    assert approved.emergency_approve_reason == "Produce load must move tonight"
    [transition] = store.transitions_for("CAR-1")
    assert transition.trigger == TransitionTrigger.EMERGENCY_APPROVAL
    assert transition.operator_id == "ADMIN-1"


def test_override_rolls_back_when_audit_fails(resolver, store, carrier_factory, monkeypatch):
    store.add_carrier(carrier_factory("CAR-1", tier=Tier.GUEST))

    def broken_audit(transition):
        raise RuntimeError("audit log unavailable")

    monkeypatch.setattr(store, "record_transition", broken_audit)

    with pytest.raises(RuntimeError):
        resolver.promote_guest("CAR-1", "OPS-7", "Vetted")
    assert store.get_carrier("CAR-1").tier == Tier.GUEST


def test_override_unknown_carrier(resolver):
    with pytest.raises(NotFoundError):
        resolver.emergency_approve("NOPE", "ADMIN-1", "Reason")


# ==================== Next tier info ====================


def test_next_tier_info(resolver):
    info = resolver.next_tier_info(Tier.SILVER, 93.5)
    assert info["next_tier"] == Tier.GOLD
    assert info["points_needed"] == 1.5

    assert resolver.next_tier_info(Tier.PLATINUM, 99.0)["next_tier"] is None
    assert resolver.next_tier_info(Tier.GUEST, 50.0)["next_tier"] == Tier.BRONZE
    assert resolver.next_tier_info(Tier.BRONZE, 95.0)["points_needed"] == 0.0


def test_transition_timestamps_are_recorded(resolver, store, carrier_factory, scorecard_factory, now):
    store.add_carrier(carrier_factory("CAR-1", tier=Tier.BRONZE))
    store.insert_scorecard(scorecard_factory("CAR-1", 99.0, "P0"))
    later = now + timedelta(hours=3)
    resolver.execute("CAR-1", now=later)
    assert store.transitions_for("CAR-1")[0].occurred_at == later


def test_recalculation_does_not_overwrite_concurrent_override(
    resolver, store, carrier_factory, scorecard_factory, now, monkeypatch
):
    store.add_carrier(
        carrier_factory("CAR-1", tier=Tier.BRONZE, status=CarrierStatus.SUSPENDED)
    )
    store.insert_scorecard(scorecard_factory("CAR-1", 92.0, "P0"))

    override = threading.Thread(
        target=resolver.emergency_approve, args=("CAR-1", "ADMIN-1", "Reinstated for a hot load")
    )
    resolve = resolver.resolve

    def resolve_while_override_waits(*args, **kwargs):
        override.start()
        override.join(timeout=0.2)
        # The override blocks on the store lock until recalculation finishes
        assert override.is_alive()
        return resolve(*args, **kwargs)

    monkeypatch.setattr(resolver, "resolve", resolve_while_override_waits)

    resolver.execute("CAR-1", now=now)
    override.join(timeout=5)

    carrier = store.get_carrier("CAR-1")
    assert carrier.tier == Tier.SILVER
    assert carrier.emergency_approved is True
    assert carrier.status == CarrierStatus.APPROVED
    assert [t.trigger for t in store.transitions_for("CAR-1")] == [
        TransitionTrigger.AUTOMATIC,
        TransitionTrigger.EMERGENCY_APPROVAL,
    ]


def test_onboard_records_fmcsa_authority_status(resolver, carrier_factory, now):
    verification = FmcsaVerification(verified=True, operating_status="AUTHORIZED FOR Property")
    onboarded = resolver.onboard(carrier_factory("CAR-9"), verification=verification, now=now)
    assert onboarded.fmcsa_authority_status == "AUTHORIZED FOR Property"

    rejected = resolver.onboard(
        carrier_factory("CAR-10"),
        verification=FmcsaVerification(verified=False, operating_status="NOT AUTHORIZED", errors=["Out of service"]),
        now=now,
    )
    assert rejected.fmcsa_authority_status == "NOT AUTHORIZED"
