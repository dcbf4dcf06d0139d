"""
Static state -> operating region lookup used by the matcher.
"""

from types import MappingProxyType
from typing import Mapping

OTHER_REGION = "Other"

_REGION_STATES: dict[str, tuple[str, ...]] = {
    "Northeast": ("CT", "DE", "MA", "MD", "ME", "NH", "NJ", "NY", "PA", "RI", "VT", "DC"),
    "Southeast": ("AL", "AR", "FL", "GA", "KY", "LA", "MS", "NC", "SC", "TN", "VA", "WV"),
    "Midwest": ("IA", "IL", "IN", "KS", "MI", "MN", "MO", "ND", "NE", "OH", "SD", "WI"),
    "Southwest": ("AZ", "NM", "OK", "TX"),
    "West Coast": ("CA", "HI", "NV", "OR", "WA"),
    "South Central": ("CO", "ID", "MT", "UT", "WY"),
}

STATE_REGIONS: Mapping[str, str] = MappingProxyType(
    {state: region for region, states in _REGION_STATES.items() for state in states}
)

REGIONS: tuple[str, ...] = tuple(_REGION_STATES)


def region_for_state(state: str) -> str:
    """Region of a two-letter state code, or "Other" when unmapped (e.g. AK)."""
    return STATE_REGIONS.get(state.strip().upper(), OTHER_REGION)


def states_for_region(region: str) -> tuple[str, ...]:
    return _REGION_STATES.get(region, ())
