"""
Catalog schemas: products and their nested variant/option tree.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime, timezone


class ImageUrls(BaseModel):
    """URLs of the stored sizes of one image."""
    large: Optional[str] = None
    medium: Optional[str] = None
    small: Optional[str] = None
    thumbnail: Optional[str] = None
    original: Optional[str] = None


class MediaItem(BaseModel):
    """Catalog image."""
    urls: ImageUrls = ImageUrls()
    priority: Optional[int] = None


class PricingInfo(BaseModel):
    """Price for one currency. Products with variants usually only carry a range."""
    price: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None


class VariantNode(BaseModel):
    """Variant or option. Nodes without options are the sellable leaves."""
    id: str
    title: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    vendor: Optional[str] = None
    is_sold_out: bool = False
    attribute_label: Optional[str] = None  # e.g. "Size"
    option_title: Optional[str] = None  # e.g. "Large"
    pricing: Dict[str, PricingInfo] = {}
    primary_image: Optional[MediaItem] = None
    media: List[MediaItem] = []
    options: List["VariantNode"] = []


class CatalogProduct(BaseModel):
    """Published catalog product for a shop."""
    id: str
    shop_id: str
    title: Optional[str] = None
    description: Optional[str] = None  # rich text
    barcode: Optional[str] = None
    sku: Optional[str] = None
    vendor: Optional[str] = None
    slug: Optional[str] = None
    is_visible: bool = True
    is_deleted: bool = False
    is_sold_out: bool = False
    supported_fulfillment_types: List[str] = []
    primary_image: Optional[MediaItem] = None
    media: List[MediaItem] = []
    pricing: Dict[str, PricingInfo] = {}
    variants: List[VariantNode] = []
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


VariantNode.model_rebuild()
