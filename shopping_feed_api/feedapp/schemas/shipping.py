"""
Shipping configuration schemas.
"""

from pydantic import BaseModel
from typing import Optional, List


class ShippingMethod(BaseModel):
    """Flat-rate shipping method."""
    id: str
    label: str
    rate: float = 0.0
    currency: Optional[str] = None
    enabled: bool = True
    fulfillment_types: List[str] = []


class ShippingProvider(BaseModel):
    """Shipping provider of a shop with its methods."""
    id: str
    shop_id: str
    name: str = ""
    enabled: bool = True
    methods: List[ShippingMethod] = []
