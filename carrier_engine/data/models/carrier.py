"""
Carrier data models - carrier profile, tiers and tier audit records.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Tier(str, Enum):
    """Ordinal carrier standing: GUEST < BRONZE < SILVER < GOLD < PLATINUM."""

    GUEST = "GUEST"
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"

    @property
    def rank(self) -> int:
        return list(Tier).index(self)

    # str ordering would compare names alphabetically; compare by rank instead
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Tier):
            return NotImplemented
        return self.rank >= other.rank


class OnboardingStatus(str, Enum):
    """Onboarding review state."""

    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class CarrierStatus(str, Enum):
    """Active status of a carrier account."""

    NEW = "NEW"
    REVIEW = "REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    SUSPENDED = "SUSPENDED"
    DEACTIVATED = "DEACTIVATED"


class CarrierSource(str, Enum):
    """How the carrier was acquired."""

    NETWORK = "network"  # onboarded directly into our own carrier network
    DAT = "dat"
    LEAD_IMPORT = "lead_import"


class TransitionTrigger(str, Enum):
    """What caused a tier or approval change."""

    ONBOARDING = "onboarding"
    AUTOMATIC = "automatic"
    MANUAL_PROMOTION = "manual_promotion"
    EMERGENCY_APPROVAL = "emergency_approval"


class CarrierProfile(BaseModel):
    """
    Carrier profile as held in the carrier directory.

    Never deleted; deactivation sets status to DEACTIVATED.
    """

    # Identity
    carrier_id: str
    user_id: Optional[str] = Field(None, description="Owning carrier user")
    company_name: str
    mc_number: Optional[str] = None
    dot_number: Optional[str] = None

    # Capability
    equipment_types: set[str] = Field(default_factory=set)
    operating_regions: set[str] = Field(default_factory=set)

    # Standing
    tier: Tier = Tier.BRONZE
    source: Optional[CarrierSource] = None
    safety_score: Optional[float] = None
    safety_rating: Optional[str] = None
    fmcsa_authority_status: Optional[str] = Field(None, description="Operating status reported by FMCSA")
    onboarding_status: OnboardingStatus = OnboardingStatus.PENDING
    status: CarrierStatus = CarrierStatus.NEW
    approved_at: Optional[datetime] = None

    # Compliance documents
    w9_uploaded: bool = False
    insurance_cert_uploaded: bool = False
    authority_doc_uploaded: bool = False
    insurance_expiry: Optional[datetime] = None

    # Emergency approval
    emergency_approved: bool = False
    emergency_approve_reason: Optional[str] = None
    emergency_approved_by: Optional[str] = None
    emergency_approved_at: Optional[datetime] = None

    notes: Optional[str] = None

    @property
    def is_network_sourced(self) -> bool:
        """Carriers without a recorded source predate lead imports."""
        return self.source is None or self.source == CarrierSource.NETWORK


class TierTransition(BaseModel):
    """Audit record for a tier or approval change."""

    carrier_id: str
    from_tier: Tier
    to_tier: Tier
    trigger: TransitionTrigger
    occurred_at: datetime
    scorecard_id: Optional[str] = None
    operator_id: Optional[str] = None
    reason: Optional[str] = None

    model_config = {"frozen": True}


class FmcsaVerification(BaseModel):
    """Verification result returned by the FMCSA collaborator."""

    verified: bool
    safety_rating: Optional[str] = None
    operating_status: Optional[str] = None
    legal_name: Optional[str] = None
    errors: list[str] = Field(default_factory=list)
