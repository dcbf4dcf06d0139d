"""Shared fixtures for the carrier engine tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import pytest

from carrier_engine.core.config import ConfigManager
from carrier_engine.data.models import (
    CarrierProfile,
    CarrierSource,
    CarrierStatus,
    Load,
    Location,
    OnboardingStatus,
    RawMetrics,
    Scorecard,
    Tier,
)
from carrier_engine.data.store import CarrierStore
from carrier_engine.engine import CarrierEngine

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def config_manager() -> ConfigManager:
    return ConfigManager(config_dir=CONFIG_DIR)


@pytest.fixture
def store() -> CarrierStore:
    return CarrierStore()


@pytest.fixture
def engine(store: CarrierStore, config_manager: ConfigManager) -> CarrierEngine:
    return CarrierEngine(store=store, config_manager=config_manager)


def make_carrier(carrier_id: str = "CAR-1", **overrides: Any) -> CarrierProfile:
    """Approved, fully documented network carrier with a year of insurance left."""
    fields: dict[str, Any] = {
        "carrier_id": carrier_id,
        "company_name": f"{carrier_id} Trucking",
        "mc_number": "MC123456",
        "dot_number": "1234567",
        "equipment_types": {"DRY_VAN"},
        "operating_regions": {"Midwest"},
        "tier": Tier.BRONZE,
        "source": CarrierSource.NETWORK,
        "safety_score": 90.0,
        "onboarding_status": OnboardingStatus.APPROVED,
        "status": CarrierStatus.APPROVED,
        "w9_uploaded": True,
        "insurance_cert_uploaded": True,
        "authority_doc_uploaded": True,
        "insurance_expiry": NOW + timedelta(days=365),
    }
    fields.update(overrides)
    return CarrierProfile(**fields)


def make_scorecard(
    carrier_id: str,
    overall_score: float,
    period: str,
    days_ago: int = 0,
    tier: Tier = Tier.BRONZE,
) -> Scorecard:
    return Scorecard(
        scorecard_id=f"SC-{carrier_id}-{period}",
        carrier_id=carrier_id,
        period=period,
        on_time_pickup_pct=overall_score,
        on_time_delivery_pct=overall_score,
        communication_score=overall_score,
        claim_ratio=100 - overall_score,
        doc_timeliness_pct=overall_score,
        acceptance_rate=overall_score,
        gps_compliance_pct=overall_score,
        overall_score=overall_score,
        tier_at_time=tier,
        bonus_earned=Decimal("0"),
        calculated_at=NOW - timedelta(days=days_ago),
    )


@pytest.fixture
def chicago_load(now: datetime) -> Load:
    return Load(
        load_id="LOAD-001",
        reference_number="REF-9001",
        origin=Location(city="Chicago", state="IL", zip_code="60601"),
        destination=Location(city="Dallas", state="TX", zip_code="75201"),
        pickup_date=now + timedelta(days=1),
        delivery_date=now + timedelta(days=3),
        equipment_type="DRY_VAN",
        rate=Decimal("2400"),
    )


@pytest.fixture
def sample_metrics() -> RawMetrics:
    return RawMetrics(
        on_time_pickup_pct=99,
        on_time_delivery_pct=99,
        communication_score=98,
        claim_ratio=0.5,
        doc_timeliness_pct=99,
        acceptance_rate=97,
        gps_compliance_pct=99,
    )


@pytest.fixture
def carrier_factory():
    return make_carrier


@pytest.fixture
def scorecard_factory():
    return make_scorecard
