"""
Shop authentication.
"""

import secrets
from typing import Dict, Optional
from fastapi import HTTPException, status, Header
from feedapp.deps import get_shop_by_id


async def verify_shop_key(shop_id: str, shop_key: Optional[str] = None) -> Dict:
    """
    Verify the X-Shop-Key header matches the shop's API key.

    Args:
        shop_id: Shop ID from path
        shop_key: Shop API key from X-Shop-Key header

    Returns:
        Shop document

    Raises:
        HTTPException: If key is missing, invalid, or the shop doesn't exist
    """
    if not shop_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing X-Shop-Key header",
            headers={"X-Error-Code": "missing_shop_key"}
        )

    shop = await get_shop_by_id(shop_id)

    shop_api_key = shop.get("api_key")
    if not shop_api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Shop '{shop_id}' does not have an API key configured",
            headers={"X-Error-Code": "missing_shop_key"}
        )

    # Constant-time comparison to prevent timing attacks
    if not secrets.compare_digest(shop_key, shop_api_key):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid X-Shop-Key",
            headers={"X-Error-Code": "invalid_shop_key"}
        )

    return shop


async def get_verified_shop(
    shop_id: str,
    x_shop_key: Optional[str] = Header(None, alias="X-Shop-Key")
) -> Dict:
    """
    FastAPI dependency to verify shop authentication.

    Usage:
        @router.post("/endpoint")
        async def my_endpoint(shop: Dict = Depends(get_verified_shop)):
            ...
    """
    return await verify_shop_key(shop_id, x_shop_key)
