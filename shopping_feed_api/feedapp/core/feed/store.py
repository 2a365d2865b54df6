"""
Persistence of generated feeds, one document per (shop, handle).
"""

from typing import Any, Dict, Optional

from feedapp.core.store import DocumentCollection
from feedapp.schemas.feed import GoogleShoppingFeed


class FeedStore:
    """Repository for the GoogleShoppingFeeds collection."""

    def __init__(self, collection: DocumentCollection):
        self.collection = collection

    @staticmethod
    def _doc_id(shop_id: str, handle: str) -> str:
        return f"{shop_id}:{handle}"

    async def find_feed(self, shop_id: str, handle: str) -> Optional[GoogleShoppingFeed]:
        doc = await self.collection.find_one({"shop_id": shop_id, "handle": handle})
        if doc is None:
            return None
        return GoogleShoppingFeed.model_validate(doc)

    async def replace_feed(self, shop_id: str, handle: str, new_doc: Dict[str, Any]) -> GoogleShoppingFeed:
        """
        Replace the stored feed with ``new_doc`` (upsert, never a merge).

        Raises:
            pydantic.ValidationError: If the document does not match the feed
                schema. Nothing is written in that case.
        """
        feed = GoogleShoppingFeed.model_validate(new_doc)
        if feed.shop_id != shop_id or feed.handle != handle:
            raise ValueError(
                f"Feed document is for ({feed.shop_id}, {feed.handle}), expected ({shop_id}, {handle})"
            )

        doc = {"id": self._doc_id(shop_id, handle), **feed.model_dump(mode="json")}
        await self.collection.replace_one({"shop_id": shop_id, "handle": handle}, doc, upsert=True)
        return feed
