"""
Carrier performance scoring and load matching for freight brokerage.
"""

from carrier_engine.engine.service import CarrierEngine

__version__ = "0.1.0"

__all__ = ["CarrierEngine"]
