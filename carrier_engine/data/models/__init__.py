"""
Pydantic data models for the carrier engine.

Core models:
- Load: Freight shipment details
- CarrierProfile: Carrier directory entry, tier and compliance documents
- Scorecard: Immutable periodic performance snapshot
- MatchResult: Per-carrier ranking for a load
"""

from .carrier import (
    CarrierProfile,
    CarrierSource,
    CarrierStatus,
    FmcsaVerification,
    OnboardingStatus,
    Tier,
    TierTransition,
    TransitionTrigger,
)
from .load import Load, LoadStatus, Location
from .match import ComplianceReport, ComplianceStatus, MatchResponse, MatchResult, ScoreBreakdown
from .scorecard import NormalizedMetrics, RawMetrics, Scorecard

__all__ = [
    "CarrierProfile",
    "CarrierSource",
    "CarrierStatus",
    "FmcsaVerification",
    "OnboardingStatus",
    "Tier",
    "TierTransition",
    "TransitionTrigger",
    "Load",
    "LoadStatus",
    "Location",
    "ComplianceReport",
    "ComplianceStatus",
    "MatchResponse",
    "MatchResult",
    "ScoreBreakdown",
    "NormalizedMetrics",
    "RawMetrics",
    "Scorecard",
]
