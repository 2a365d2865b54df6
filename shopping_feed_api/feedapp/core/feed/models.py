"""
Feed data models.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict


# Handle of the generated index feed
FEED_HANDLE = 'google-shopping-feed.xml'

# Variant attribute labels Google Shopping understands
VARIANT_ATTRIBUTES = ('size', 'color', 'pattern', 'material', 'gender')

MAX_ADDITIONAL_IMAGES = 10


@dataclass
class FeedItem:
    """
    Normalized feed item data structure.

    Text fields hold plain, unescaped text. Escaping happens once, when the
    item is written to XML.
    """
    # Identifiers
    id: str  # SKU, or the product/variant id when there is no SKU
    item_group_id: Optional[str] = None  # Parent product SKU/id for variants

    # Product information
    title: Optional[str] = None
    description: Optional[str] = None
    link: str = ''
    primary_image_url: Optional[str] = None
    additional_images: List[str] = field(default_factory=list)

    # Pricing
    price: Optional[float] = None
    currency: Optional[str] = None

    # Attributes
    is_sold_out: bool = False
    sku: Optional[str] = None
    barcode: Optional[str] = None
    vendor: Optional[str] = None
    condition: str = 'new'
    supported_fulfillment_types: List[str] = field(default_factory=list)
    variant_attributes: Dict[str, str] = field(default_factory=dict)

    @property
    def availability(self) -> str:
        return 'out of stock' if self.is_sold_out else 'in stock'

    @property
    def price_text(self) -> Optional[str]:
        """Price as Google expects it, e.g. ``9.99 USD``."""
        if self.price is None or not self.currency:
            return None
        return format_price(self.price, self.currency)


def format_price(amount: float, currency: str) -> str:
    return f"{amount:.2f} {currency}"
