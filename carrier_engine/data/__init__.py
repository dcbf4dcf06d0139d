"""
Data layer: pydantic models, static lookup tables and the in-memory store.
"""

from .regions import region_for_state
from .store import CarrierStore

__all__ = ["CarrierStore", "region_for_state"]
