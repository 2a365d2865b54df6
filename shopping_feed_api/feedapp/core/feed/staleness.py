"""
Decide whether a shop's feed must be rebuilt.
"""

from typing import Optional

from feedapp.core.store import DocumentCollection
from feedapp.schemas.feed import GoogleShoppingFeed


async def should_regenerate(
    feed: Optional[GoogleShoppingFeed],
    catalog: DocumentCollection,
    shop_id: str
) -> bool:
    """
    True when the shop has no feed yet, or when a catalog entry of the shop
    was updated strictly after the stored feed was created.
    """
    if feed is None:
        return True

    changed = await catalog.find_one({
        "shop_id": shop_id,
        "updated_at": {"$gt": feed.created_at}
    })
    return changed is not None
