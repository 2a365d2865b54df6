"""
Shops API endpoints.
"""

from fastapi import APIRouter
from typing import List

from feedapp.deps import get_feed_context
from feedapp.schemas.shops import Shop, ShopSummary

router = APIRouter()


@router.get("", response_model=List[ShopSummary])
async def list_shops():
    """
    List all shops (no secrets returned).
    """
    ctx = await get_feed_context()
    result = []

    for doc in await ctx.shops.find():
        shop = Shop.model_validate(doc)
        result.append(ShopSummary(
            id=shop.id,
            name=shop.name,
            domains=shop.domains,
            shop_type=shop.shop_type,
            has_api_key=bool(shop.api_key)
        ))

    return result
