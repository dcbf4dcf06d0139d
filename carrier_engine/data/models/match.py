"""
Match data models - per-carrier match scoring for a single load.

Match results are ephemeral: built fresh on every match request, never stored.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from carrier_engine.data.models.carrier import CarrierSource, Tier


class ComplianceStatus(str, Enum):
    """Compliance traffic light."""

    RED = "red"
    AMBER = "amber"
    GREEN = "green"


class ComplianceReport(BaseModel):
    """ComplianceGate output with the reasons behind a non-GREEN status."""

    status: ComplianceStatus
    reasons: list[str] = Field(default_factory=list)
    days_until_expiry: Optional[int] = None


class ScoreBreakdown(BaseModel):
    """Points awarded per match factor."""

    equipment: int = 0
    region: int = 0
    performance: int = 0
    compliance: int = 0
    tier: int = 0
    source_bonus: int = 0
    availability: int = 0

    model_config = {"frozen": True}

    @property
    def total(self) -> int:
        return (
            self.equipment
            + self.region
            + self.performance
            + self.compliance
            + self.tier
            + self.source_bonus
            + self.availability
        )


class MatchResult(BaseModel):
    """Ranking entry for one candidate carrier."""

    carrier_id: str
    company_name: str
    mc_number: Optional[str] = None
    dot_number: Optional[str] = None
    tier: Tier
    source: CarrierSource
    overall_score: float = 0.0
    safety_score: Optional[float] = None
    emergency_approved: bool = False

    equipment_match: bool
    compliance_status: ComplianceStatus
    breakdown: ScoreBreakdown

    @computed_field
    @property
    def match_score(self) -> int:
        """Aggregate additive ranking value."""
        return self.breakdown.total


class MatchResponse(BaseModel):
    """Ranked matches for a load, consumed by the dispatch workflow."""

    load_id: str
    matches: list[MatchResult]
    total_candidates: int
    fallback_used: bool = False
    suggest_dat: bool
