"""
Shop feed settings endpoints.
"""

import logging
from typing import Dict
from fastapi import APIRouter, Depends

from feedapp.deps import get_feed_context, get_scheduler
from feedapp.core.auth import get_verified_shop
from feedapp.schemas.settings import ShopSettings, ShopSettingsUpdate

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("", response_model=ShopSettings)
async def get_shop_settings(shop_id: str, shop: Dict = Depends(get_verified_shop)):
    """Get feed settings of a shop."""
    ctx = await get_feed_context()
    return await ctx.shop_settings.get(shop_id)


@router.put("", response_model=ShopSettings)
async def update_shop_settings(
    shop_id: str,
    update: ShopSettingsUpdate,
    shop: Dict = Depends(get_verified_shop)
):
    """
    Update feed settings of a shop.

    A new refresh period replaces the shop's recurring regeneration job.
    Unparseable refresh periods are rejected by ShopSettingsUpdate (422).
    """
    ctx = await get_feed_context()
    previous = await ctx.shop_settings.get(shop_id)
    updated = await ctx.shop_settings.update(shop_id, update)

    if updated.google_shopping_feed_refresh_period != previous.google_shopping_feed_refresh_period:
        scheduler = await get_scheduler()
        await scheduler.update_task_for_shop(shop_id)
        logger.info(
            f"Refresh period of shop {shop_id} changed to "
            f"{updated.google_shopping_feed_refresh_period}, job re-armed"
        )

    return updated
