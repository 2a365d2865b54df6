"""
Main API router for v1.
"""

from fastapi import APIRouter
from feedapp.api.v1 import feeds, settings, shops

router = APIRouter()

router.include_router(shops.router, prefix="/shops", tags=["shops"])
router.include_router(feeds.router, tags=["google-shopping-feeds"])
router.include_router(settings.router, prefix="/shops/{shop_id}/settings", tags=["settings"])
