"""
Google Shopping feed schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime


class GoogleShoppingFeed(BaseModel):
    """Stored feed document, unique per (shop_id, handle)."""
    shop_id: str = Field(..., min_length=1)
    handle: str = Field(..., min_length=1)
    xml: str
    created_at: datetime


class GenerateFeedsResponse(BaseModel):
    """Response of the generate-now mutation."""
    was_job_scheduled: bool = True
