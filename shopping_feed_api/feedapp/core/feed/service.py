"""
Feed generation service - orchestrates the entire feed generation process.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from feedapp.core.events import NotificationEmitter
from feedapp.core.shop_settings import ShopSettingsStore
from feedapp.core.store import DocumentCollection
from feedapp.schemas.catalog import CatalogProduct
from feedapp.schemas.shipping import ShippingProvider
from feedapp.schemas.shops import Shop
from .models import FeedItem, FEED_HANDLE
from .staleness import should_regenerate
from .store import FeedStore
from .transform import catalog_to_feed_items
from .xml_writer import write_feed_xml


logger = logging.getLogger(__name__)


class FeedGenerationError(Exception):
    """Base exception for feed generation errors."""
    pass


class ShopNotFoundError(FeedGenerationError):
    """The shop to generate a feed for does not exist."""
    pass


@dataclass
class FeedContext:
    """Collections and collaborators used by feed generation."""
    shops: DocumentCollection
    catalog: DocumentCollection
    shipping: DocumentCollection
    feed_store: FeedStore
    shop_settings: ShopSettingsStore
    notifier: NotificationEmitter
    feed_handle: str = FEED_HANDLE


async def get_product_feed_items(
    catalog: DocumentCollection,
    shop_id: str,
    preferred_currency: Optional[str] = None
) -> List[FeedItem]:
    """
    Load the visible, non-deleted products of a shop and transform them.

    Args:
        catalog: Catalog collection
        shop_id: Shop to load products for
        preferred_currency: Currency to list for multi-currency products

    Returns:
        FeedItems: each product followed by its leaf variants
    """
    docs = await catalog.find({
        "shop_id": shop_id,
        "is_visible": True,
        "is_deleted": False
    })
    products = [CatalogProduct.model_validate(doc) for doc in docs]
    return catalog_to_feed_items(products, preferred_currency)


async def get_shipping_providers(shipping: DocumentCollection, shop_id: str) -> List[ShippingProvider]:
    docs = await shipping.find({"shop_id": shop_id, "enabled": True})
    return [ShippingProvider.model_validate(doc) for doc in docs]


async def generate_feed_for_shop(ctx: FeedContext, shop_id: str) -> bool:
    """
    Create and store the Google Shopping feed of one shop, if the catalog
    changed since the stored feed was generated.

    Returns:
        True if the feed was regenerated, False if it was up to date.

    Raises:
        ShopNotFoundError: If the shop does not exist.
        pydantic.ValidationError: If the new feed document is invalid.
    """
    shop_doc = await ctx.shops.find_one({"id": shop_id})
    if not shop_doc:
        raise ShopNotFoundError(f"Shop {shop_id} not found")
    shop = Shop.model_validate(shop_doc)

    logger.debug(f"Generating feed for shop {shop.name}")

    feed = await ctx.feed_store.find_feed(shop_id, ctx.feed_handle)
    if not await should_regenerate(feed, ctx.catalog, shop_id):
        logger.debug(f"Feed for shop {shop_id} is up to date, skipping")
        return False

    # Taken before the catalog scan so updates made during generation stay newer
    created_at = datetime.now(timezone.utc)

    settings = await ctx.shop_settings.get(shop_id)
    items = await get_product_feed_items(ctx.catalog, shop_id, settings.feed_currency)
    providers = await get_shipping_providers(ctx.shipping, shop_id)

    new_doc = {
        "shop_id": shop_id,
        "handle": ctx.feed_handle,
        "xml": write_feed_xml(items, shop, providers, settings.google_shopping_shipping_country),
        "created_at": created_at,
    }
    await ctx.feed_store.replace_feed(shop_id, ctx.feed_handle, new_doc)

    logger.info(f"Regenerated {ctx.feed_handle} for shop {shop_id} with {len(items)} items")
    return True


async def generate_feeds(ctx: FeedContext, shop_ids: List[str], notify_user_id: str = "") -> None:
    """
    Generate feeds for one or more shops, then notify the requesting user.

    Args:
        ctx: FeedContext
        shop_ids: Shops to generate feeds for
        notify_user_id: Account to notify once done (manual runs only)
    """
    if not shop_ids:
        raise ValueError("generate_feeds requires a list of shop ids")

    time_start = time.monotonic()

    await asyncio.gather(*(generate_feed_for_shop(ctx, shop_id) for shop_id in shop_ids))

    if notify_user_id:
        await ctx.notifier.create_notification(
            notify_user_id,
            type="googleShoppingFeedGenerated",
            message="Google Shopping feed refresh is complete",
            url=f"/{ctx.feed_handle}"
        )

    elapsed_ms = (time.monotonic() - time_start) * 1000
    logger.debug(f"Google Shopping feed generation complete. Took {elapsed_ms:.0f}ms")
