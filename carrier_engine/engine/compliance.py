"""
Compliance gate - RED/AMBER/GREEN from insurance expiry and required documents.

- RED: insurance missing or expired (expiry <= now), or any required document missing
- AMBER: insurance valid but expiring inside the warning window, all documents present
- GREEN: insurance valid beyond the window and all documents present

Status is time-relative, so it is recomputed on every call and never cached.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from carrier_engine.data.models.carrier import CarrierProfile
from carrier_engine.data.models.match import ComplianceReport, ComplianceStatus
from carrier_engine.engine.base import BaseComponent

DEFAULT_WARNING_DAYS = 30


def as_utc(value: datetime) -> datetime:
    # Naive timestamps from the directory are stored in UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def evaluate_compliance(
    insurance_expiry: Optional[datetime],
    w9_uploaded: bool,
    insurance_cert_uploaded: bool,
    authority_doc_uploaded: bool,
    now: Optional[datetime] = None,
    warning_days: int = DEFAULT_WARNING_DAYS,
) -> ComplianceReport:
    """
    Derive the compliance status of a carrier.

    Pure: the same inputs (including now) always give the same report.

    Args:
        insurance_expiry: Insurance expiry; None counts as expired
        w9_uploaded: W-9 on file
        insurance_cert_uploaded: Insurance certificate on file
        authority_doc_uploaded: Operating authority document on file
        now: Reference time (defaults to current UTC time)
        warning_days: Days before expiry that turn GREEN into AMBER

    Returns:
        ComplianceReport with status and reasons
    """
    now = as_utc(now or datetime.now(timezone.utc))
    reasons: list[str] = []

    documents = {
        "W-9": w9_uploaded,
        "insurance certificate": insurance_cert_uploaded,
        "authority document": authority_doc_uploaded,
    }
    for name, present in documents.items():
        if not present:
            reasons.append(f"Missing {name}")

    days_until_expiry: Optional[int] = None
    expiry: Optional[datetime] = None
    if insurance_expiry is None:
        reasons.append("No insurance expiry on file")
    else:
        expiry = as_utc(insurance_expiry)
        remaining = expiry - now
        days_until_expiry = math.floor(remaining.total_seconds() / 86400)
        if expiry <= now:
            reasons.append(f"Insurance expired {expiry.date().isoformat()}")

    if reasons:
        return ComplianceReport(
            status=ComplianceStatus.RED, reasons=reasons, days_until_expiry=days_until_expiry
        )

    if expiry is not None and expiry < now + timedelta(days=warning_days):
        return ComplianceReport(
            status=ComplianceStatus.AMBER,
            reasons=[f"Insurance expires within {warning_days} days"],
            days_until_expiry=days_until_expiry,
        )

    return ComplianceReport(status=ComplianceStatus.GREEN, days_until_expiry=days_until_expiry)


class ComplianceGate(BaseComponent):
    """Compliance status for carrier profiles, using the configured warning window."""

    def __init__(self, **kwargs: Any) -> None:
        """Initialize the compliance gate."""
        super().__init__(component_name="compliance_gate", **kwargs)

    def execute(self, carrier: CarrierProfile, now: Optional[datetime] = None) -> ComplianceReport:
        """
        Evaluate one carrier.

        Args:
            carrier: Carrier profile snapshot
            now: Reference time (defaults to current UTC time)

        Returns:
            ComplianceReport
        """
        report = evaluate_compliance(
            insurance_expiry=carrier.insurance_expiry,
            w9_uploaded=carrier.w9_uploaded,
            insurance_cert_uploaded=carrier.insurance_cert_uploaded,
            authority_doc_uploaded=carrier.authority_doc_uploaded,
            now=now,
            warning_days=self.engine_config.compliance.expiry_warning_days,
        )
        self.logger.debug(
            "compliance_evaluated",
            carrier_id=carrier.carrier_id,
            status=report.status.value,
            reasons=report.reasons,
        )
        return report

    def status(self, carrier: CarrierProfile, now: Optional[datetime] = None) -> ComplianceStatus:
        return self.execute(carrier, now=now).status
