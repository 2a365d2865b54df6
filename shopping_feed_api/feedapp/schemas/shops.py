"""
Shop schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Literal


class Shop(BaseModel):
    """Shop document."""
    id: str
    name: str
    description: Optional[str] = None
    domains: List[str] = Field(default_factory=list, description="Storefront hostnames")
    shop_type: Literal["primary", "merchant"] = "merchant"
    api_key: Optional[str] = Field(None, description="Key required by mutating endpoints")


class ShopSummary(BaseModel):
    """Shop summary (no secrets)."""
    id: str
    name: str
    domains: List[str]
    shop_type: str
    has_api_key: bool
