"""
Scoring components of the carrier engine.

This module contains:
- MetricNormalizer: Raw weekly KPI validation and clamping
- ScorecardCalculator: Weighted overall score and bonus
- TierResolver: Tier state machine, overrides and audit
- ComplianceGate: RED/AMBER/GREEN compliance status
- CarrierMatcher: Load-to-carrier ranking with fallback
- CarrierEngine: Facade over a carrier store
"""

from .base import BaseComponent, ComponentDecision
from .compliance import ComplianceGate, evaluate_compliance
from .matcher import AvailabilityStrategy, CarrierMatcher, FlatAvailability
from .metrics import MetricNormalizer, normalize_metrics
from .scorecard import ScorecardCalculator, calculate_overall_score
from .service import CarrierEngine
from .tiers import TierDecision, TierResolver

__all__ = [
    "BaseComponent",
    "ComponentDecision",
    "ComplianceGate",
    "evaluate_compliance",
    "AvailabilityStrategy",
    "CarrierMatcher",
    "FlatAvailability",
    "MetricNormalizer",
    "normalize_metrics",
    "ScorecardCalculator",
    "calculate_overall_score",
    "CarrierEngine",
    "TierDecision",
    "TierResolver",
]
