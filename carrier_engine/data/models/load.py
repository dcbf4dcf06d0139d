"""
Load data model - represents a freight shipment posted by a broker.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field, field_validator


class LoadStatus(str, Enum):
    """Load status enumeration."""

    POSTED = "posted"
    TENDERED = "tendered"
    BOOKED = "booked"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class Location(BaseModel):
    """Geographic location."""

    city: str
    state: str
    zip_code: Optional[str] = None

    @field_validator("state")
    @classmethod
    def normalize_state(cls, value: str) -> str:
        return value.strip().upper()

    def __str__(self) -> str:
        """String representation."""
        return f"{self.city}, {self.state}"


class Load(BaseModel):
    """
    Represents a freight load/shipment.

    Owned by the posting broker; carrier_id is set when a tender is accepted.
    """

    # Identification
    load_id: str = Field(..., description="Unique load identifier")
    reference_number: Optional[str] = Field(None, description="Customer reference number")
    broker_id: Optional[str] = Field(None, description="Posting broker")
    carrier_id: Optional[str] = Field(None, description="Carrier that accepted the tender")

    # Status
    status: LoadStatus = Field(LoadStatus.POSTED, description="Current load status")

    # Locations
    origin: Location = Field(..., description="Pickup location")
    destination: Location = Field(..., description="Delivery location")

    # Timing
    pickup_date: datetime = Field(..., description="Scheduled pickup date/time")
    delivery_date: datetime = Field(..., description="Scheduled delivery date/time")

    # Equipment
    equipment_type: str = Field(..., description="Equipment type needed (e.g., 'DRY_VAN')")

    # Financial
    rate: Decimal = Field(..., gt=0, description="Posted rate (USD)")

    @computed_field
    @property
    def origin_state(self) -> str:
        """Pickup state code, used for region lookup."""
        return self.origin.state
