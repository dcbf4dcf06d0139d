#!/usr/bin/env python3
"""
Initialize the carrier engine.

This script sets up the project by:
- Checking the Python version
- Loading environment variables from .env
- Validating config/config.yaml against the engine's rule schema
- Running a smoke match against a fixture carrier
"""

import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pydantic
import yaml
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def check_python_version() -> bool:
    """Verify Python version is 3.12 or higher."""
    if sys.version_info < (3, 12):
        print(f"❌ Python 3.12+ required. Current version: {sys.version}")
        return False
    print(f"✅ Python version: {sys.version_info.major}.{sys.version_info.minor}")
    return True


def check_env_file() -> bool:
    """Load .env if present; every variable has a default."""
    env_path = PROJECT_ROOT / ".env"
    if not env_path.exists():
        print("⚠️  .env file not found, using defaults")
        print("   Run: cp .env.example .env")
        return True
    load_dotenv(env_path)
    print("✅ .env file loaded")
    return True


def check_config_file() -> bool:
    """Validate config.yaml parses and satisfies the engine schema."""
    from carrier_engine.core.config import ConfigManager

    config_path = PROJECT_ROOT / "config" / "config.yaml"
    if not config_path.exists():
        print(f"⚠️  {config_path} not found, reference defaults will be used")
        return True

    try:
        with open(config_path) as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        print(f"❌ Error parsing config.yaml: {e}")
        return False
    if not raw:
        print("❌ config.yaml is empty")
        return False

    try:
        engine = ConfigManager(config_dir=config_path.parent).engine
    except pydantic.ValidationError as e:
        print(f"❌ config.yaml failed validation:\n{e}")
        return False

    weights = engine.scoring.weights
    print(f"✅ config.yaml is valid (weights sum to {sum(weights.model_dump().values())})")
    print(f"   Tier thresholds: {engine.tiers.thresholds}")
    return True


def smoke_test() -> bool:
    """Score and match one fixture carrier end to end."""
    from carrier_engine import CarrierEngine
    from carrier_engine.data.models import (
        CarrierProfile,
        CarrierStatus,
        Load,
        Location,
        OnboardingStatus,
        RawMetrics,
    )

    now = datetime.now(timezone.utc)
    engine = CarrierEngine()
    engine.store.add_carrier(
        CarrierProfile(
            carrier_id="SMOKE-1",
            company_name="Smoke Test Freight",
            equipment_types={"DRY_VAN"},
            operating_regions={"Midwest"},
            onboarding_status=OnboardingStatus.APPROVED,
            status=CarrierStatus.APPROVED,
            w9_uploaded=True,
            insurance_cert_uploaded=True,
            authority_doc_uploaded=True,
            insurance_expiry=now + timedelta(days=365),
        )
    )
    engine.store.add_load(
        Load(
            load_id="SMOKE-LOAD",
            origin=Location(city="Chicago", state="IL"),
            destination=Location(city="Dallas", state="TX"),
            pickup_date=now,
            delivery_date=now + timedelta(days=2),
            equipment_type="DRY_VAN",
            rate=Decimal("2400"),
        )
    )
    scorecard = engine.compute_scorecard(
        "SMOKE-1",
        "smoke",
        RawMetrics(
            on_time_pickup_pct=95,
            on_time_delivery_pct=95,
            communication_score=90,
            claim_ratio=1,
            doc_timeliness_pct=90,
            acceptance_rate=90,
            gps_compliance_pct=95,
        ),
    )
    response = engine.match_load("SMOKE-LOAD")
    if not response.matches:
        print("❌ Smoke match returned no carriers")
        return False
    print(f"✅ Smoke scorecard {scorecard.overall_score}, match score {response.matches[0].match_score}")
    return True


def main() -> int:
    """Run all initialization checks."""
    from carrier_engine.core.logging import configure_logging

    configure_logging(level="WARNING", json=False)

    print("=" * 60)
    print("Carrier Engine - Initialization")
    print("=" * 60)

    checks = [
        ("Python version", check_python_version),
        (".env file", check_env_file),
        ("Configuration file", check_config_file),
        ("Smoke test", smoke_test),
    ]

    passed = 0
    failed = 0

    for name, check_func in checks:
        print(f"\nChecking {name}...")
        if check_func():
            passed += 1
        else:
            failed += 1

    print("\n" + "=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    if failed == 0:
        return 0
    print("\n❌ Some checks failed. Please fix the issues above.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
