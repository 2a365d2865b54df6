"""
Shop-scoped feed settings with application defaults.
"""

from typing import Dict, Any

from feedapp.config import Settings
from feedapp.core.store import DocumentCollection
from feedapp.schemas.settings import ShopSettings, ShopSettingsUpdate


class ShopSettingsStore:
    """Read and update the AppSettings collection."""

    def __init__(self, collection: DocumentCollection, settings: Settings):
        self.collection = collection
        self.defaults = {
            "google_shopping_feed_refresh_period": settings.default_refresh_period,
            "google_shopping_shipping_country": settings.default_shipping_country,
        }

    async def get(self, shop_id: str) -> ShopSettings:
        """Settings of a shop, falling back to defaults for unset values."""
        doc = await self.collection.find_one({"shop_id": shop_id}) or {}
        values: Dict[str, Any] = dict(self.defaults)
        for field in ShopSettings.model_fields:
            if doc.get(field) is not None:
                values[field] = doc[field]
        return ShopSettings(**values)

    async def update(self, shop_id: str, update: ShopSettingsUpdate) -> ShopSettings:
        """Store the fields set in ``update`` and return the resulting settings."""
        changes = update.model_dump(exclude_unset=True)
        doc = await self.collection.find_one({"shop_id": shop_id})
        if doc is None:
            await self.collection.insert_one({"id": shop_id, "shop_id": shop_id, **changes})
        else:
            await self.collection.update_one({"shop_id": shop_id}, changes)
        return await self.get(shop_id)
