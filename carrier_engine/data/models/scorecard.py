"""
Scorecard data models - weekly KPI input and the immutable performance snapshot.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from carrier_engine.data.models.carrier import Tier


class RawMetrics(BaseModel):
    """
    Raw weekly KPI inputs for one carrier/period, as reported.

    Any field may be missing; values are not yet clamped. Unknown keys are
    rejected so a misnamed metric never scores as missing.
    """

    model_config = {"extra": "forbid"}

    on_time_pickup_pct: Optional[float] = None
    on_time_delivery_pct: Optional[float] = None
    communication_score: Optional[float] = None
    claim_ratio: Optional[float] = None
    doc_timeliness_pct: Optional[float] = None
    acceptance_rate: Optional[float] = None
    gps_compliance_pct: Optional[float] = None


class NormalizedMetrics(BaseModel):
    """Canonical metric set. Every value is within [0, 100]."""

    on_time_pickup_pct: float = Field(..., ge=0, le=100)
    on_time_delivery_pct: float = Field(..., ge=0, le=100)
    communication_score: float = Field(..., ge=0, le=100)
    claim_ratio: float = Field(..., ge=0, le=100)
    doc_timeliness_pct: float = Field(..., ge=0, le=100)
    acceptance_rate: float = Field(..., ge=0, le=100)
    gps_compliance_pct: float = Field(..., ge=0, le=100)
    missing: tuple[str, ...] = ()

    model_config = {"frozen": True}


class Scorecard(BaseModel):
    """
    Immutable periodic performance snapshot for one carrier.

    Created once per (carrier_id, period); the latest by calculated_at is
    the carrier's current score.
    """

    scorecard_id: str
    carrier_id: str
    period: str

    on_time_pickup_pct: float
    on_time_delivery_pct: float
    communication_score: float
    claim_ratio: float
    doc_timeliness_pct: float
    acceptance_rate: float
    gps_compliance_pct: float

    overall_score: float = Field(..., ge=0, le=100)
    tier_at_time: Tier
    bonus_earned: Decimal = Decimal("0")
    calculated_at: datetime

    model_config = {"frozen": True}
