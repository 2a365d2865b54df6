"""
Shop-scoped settings schemas.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional

from feedapp.core.jobs import parse_schedule


class ShopSettings(BaseModel):
    """Feed settings of one shop."""
    google_shopping_feed_refresh_period: str = "every 24 hours"
    google_shopping_shipping_country: str = "US"
    feed_currency: Optional[str] = Field(
        None,
        description="Currency used for feed prices. Lexicographically first available currency if unset."
    )


class ShopSettingsUpdate(BaseModel):
    """Partial settings update."""
    google_shopping_feed_refresh_period: Optional[str] = None
    google_shopping_shipping_country: Optional[str] = None
    feed_currency: Optional[str] = None

    @field_validator('google_shopping_feed_refresh_period')
    @classmethod
    def validate_refresh_period(cls, v):
        if v is not None:
            parse_schedule(v)
        return v
