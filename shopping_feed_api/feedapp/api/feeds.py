"""
Public route serving generated feed XML files.
"""

import logging
from fastapi import APIRouter, Request, Response, status

from feedapp.deps import get_feed_context, get_app_settings
from feedapp.core.feed.server import render_primary_feed

router = APIRouter(tags=["Feeds"])

logger = logging.getLogger(__name__)


@router.get("/google-shopping-feed{suffix:path}", include_in_schema=False)
async def serve_google_shopping_feed(suffix: str, request: Request):
    """
    Serve a stored feed of the primary shop, e.g. ``/google-shopping-feed.xml``.

    Responds 404 with an empty body when there is no primary shop or no feed
    with that handle.
    """
    settings = get_app_settings()
    handle = f"google-shopping-feed{suffix}"
    request_root = str(request.base_url).rstrip("/")

    ctx = await get_feed_context()
    xml = await render_primary_feed(
        ctx.shops,
        ctx.feed_store,
        handle,
        shop_url=settings.storefront_url or request_root,
        api_url=settings.api_root_url or request_root
    )

    if xml is None:
        logger.debug(f"No feed to serve for handle {handle}")
        return Response(status_code=status.HTTP_404_NOT_FOUND, media_type="text/xml")

    return Response(content=xml, status_code=status.HTTP_200_OK, media_type="text/xml")
