"""
Transform catalog products and their leaf variants into feed items.
"""

from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote

from feedapp.core.utils import strip_html
from feedapp.schemas.catalog import CatalogProduct, MediaItem, PricingInfo, VariantNode
from .models import FeedItem, MAX_ADDITIONAL_IMAGES, VARIANT_ATTRIBUTES
from .variants import find_deepest_variants


def select_currency(
    pricing: Dict[str, PricingInfo],
    preferred_currency: Optional[str] = None
) -> Optional[str]:
    """
    Pick the currency to list in the feed.

    The preferred currency wins when the pricing map has it, otherwise the
    lexicographically first currency code is used so the choice does not
    depend on how the map was stored.
    """
    if not pricing:
        return None
    if preferred_currency and preferred_currency in pricing:
        return preferred_currency
    return sorted(pricing)[0]


def resolve_price(
    pricing: Dict[str, PricingInfo],
    preferred_currency: Optional[str] = None
) -> Tuple[Optional[float], Optional[str]]:
    """Return (amount, currency); fixed price first, range minimum as fallback."""
    currency = select_currency(pricing, preferred_currency)
    if currency is None:
        return None, None
    info = pricing[currency]
    amount = info.price if info.price is not None else info.min_price
    return amount, currency


def _image_url(media: Optional[MediaItem]) -> Optional[str]:
    if media is None:
        return None
    return media.urls.large or None


def additional_image_urls(media: Iterable[MediaItem], primary_url: Optional[str]) -> List[str]:
    """Media URLs in original order, without the primary image, at most 10."""
    urls = []
    for item in media:
        url = _image_url(item)
        if not url or url == primary_url:
            continue
        urls.append(url)
        if len(urls) >= MAX_ADDITIONAL_IMAGES:
            break
    return urls


def variant_attributes(variant: VariantNode) -> Dict[str, str]:
    """Map a recognized attribute label (size, color, ...) to the option title."""
    label = (variant.attribute_label or '').strip().lower()
    if label in VARIANT_ATTRIBUTES and variant.option_title:
        return {label: variant.option_title}
    return {}


def product_link(slug: Optional[str], variant_id: Optional[str] = None) -> str:
    link = f"BASE_URL/product/{quote(slug or '', safe='')}"
    if variant_id:
        link += f"/{quote(variant_id, safe='')}"
    return link


def _description(product: CatalogProduct) -> Optional[str]:
    return strip_html(product.description) or None


def transform_product(product: CatalogProduct, preferred_currency: Optional[str] = None) -> FeedItem:
    """Feed item for the product itself."""
    primary_url = _image_url(product.primary_image)
    price, currency = resolve_price(product.pricing, preferred_currency)

    return FeedItem(
        id=product.sku or product.id,
        title=product.title or None,
        description=_description(product),
        link=product_link(product.slug),
        primary_image_url=primary_url,
        additional_images=additional_image_urls(product.media, primary_url),
        price=price,
        currency=currency,
        is_sold_out=product.is_sold_out,
        # g:mpn is only written for a real SKU, never the id fallback
        sku=product.sku or None,
        barcode=product.barcode or None,
        vendor=product.vendor or None,
        supported_fulfillment_types=list(product.supported_fulfillment_types),
    )


def transform_variant(
    product: CatalogProduct,
    variant: VariantNode,
    preferred_currency: Optional[str] = None
) -> FeedItem:
    """Feed item for one leaf variant, linked to its product by item group."""
    primary_url = _image_url(variant.primary_image) or _image_url(product.primary_image)
    price, currency = resolve_price(variant.pricing, preferred_currency)

    return FeedItem(
        id=variant.sku or variant.id,
        item_group_id=product.sku or product.id,
        title=variant.title or product.title or None,
        description=_description(product),
        link=product_link(product.slug, variant.id),
        primary_image_url=primary_url,
        additional_images=additional_image_urls(variant.media, primary_url),
        price=price,
        currency=currency,
        is_sold_out=variant.is_sold_out,
        sku=variant.sku or None,
        barcode=variant.barcode or None,
        vendor=variant.vendor or product.vendor or None,
        supported_fulfillment_types=list(product.supported_fulfillment_types),
        variant_attributes=variant_attributes(variant),
    )


def product_to_feed_items(product: CatalogProduct, preferred_currency: Optional[str] = None) -> List[FeedItem]:
    """
    Feed items for a product: the product first, then each leaf variant.

    Args:
        product: Catalog product
        preferred_currency: Currency to list when the product is priced in several

    Returns:
        List of FeedItem objects
    """
    items = [transform_product(product, preferred_currency)]
    for variant in find_deepest_variants(product):
        items.append(transform_variant(product, variant, preferred_currency))
    return items


def catalog_to_feed_items(
    products: Iterable[CatalogProduct],
    preferred_currency: Optional[str] = None
) -> List[FeedItem]:
    items: List[FeedItem] = []
    for product in products:
        items.extend(product_to_feed_items(product, preferred_currency))
    return items
