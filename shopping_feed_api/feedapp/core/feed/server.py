"""
Load stored feeds for serving and resolve their URL placeholders.
"""

from typing import Optional

from feedapp.core.store import DocumentCollection
from feedapp.core.utils import parse_url_domain
from feedapp.schemas.feed import GoogleShoppingFeed
from feedapp.schemas.shops import Shop
from .store import FeedStore


def substitute_placeholders(xml: str, shop_url: str, api_url: str) -> str:
    """
    Replace ``MEDIA_BASE_URL`` with the API root and ``BASE_URL`` with the shop URL.

    MEDIA_BASE_URL goes first since it contains BASE_URL.
    """
    shop_url = shop_url.strip().rstrip('/')
    api_url = api_url.strip().rstrip('/')
    return xml.replace('MEDIA_BASE_URL', api_url).replace('BASE_URL', shop_url)


async def get_feed_xml(feed_store: FeedStore, shop_id: str, handle: str) -> str:
    """Stored XML of a feed, or an empty string when there is none."""
    feed = await feed_store.find_feed(shop_id, handle)
    if feed is None:
        return ''
    return feed.xml


async def find_primary_shop(shops: DocumentCollection) -> Optional[Shop]:
    doc = await shops.find_one({"shop_type": "primary"})
    return Shop.model_validate(doc) if doc else None


async def find_shop_by_url(shops: DocumentCollection, shop_url: str) -> Optional[Shop]:
    """Shop whose domains include the hostname of ``shop_url``."""
    domain = parse_url_domain(shop_url)
    if not domain:
        return None
    doc = await shops.find_one({"domains": domain})
    return Shop.model_validate(doc) if doc else None


async def get_feed(
    shops: DocumentCollection,
    feed_store: FeedStore,
    handle: str,
    shop_url: str,
    api_url: str
) -> Optional[GoogleShoppingFeed]:
    """
    Feed for the shop serving ``shop_url``, with placeholders replaced.

    Returns:
        GoogleShoppingFeed, or None for an unknown domain or handle
    """
    shop = await find_shop_by_url(shops, shop_url)
    if shop is None:
        return None

    feed = await feed_store.find_feed(shop.id, handle.strip())
    if feed is None:
        return None

    feed.xml = substitute_placeholders(feed.xml, shop_url, api_url)
    return feed


async def render_primary_feed(
    shops: DocumentCollection,
    feed_store: FeedStore,
    handle: str,
    shop_url: str,
    api_url: str
) -> Optional[str]:
    """XML of the primary shop's feed ready to serve, or None when missing."""
    shop = await find_primary_shop(shops)
    if shop is None:
        return None

    xml = await get_feed_xml(feed_store, shop.id, handle)
    if not xml:
        return None
    return substitute_placeholders(xml, shop_url, api_url)
