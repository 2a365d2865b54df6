"""
Google Shopping feed API endpoints.
"""

import logging
from typing import Dict, Optional
from fastapi import APIRouter, Depends, Header, Query, Request

from feedapp.deps import get_feed_context, get_scheduler, get_background_jobs, get_app_settings
from feedapp.core.auth import get_verified_shop
from feedapp.core.feed.scheduler import JOB_TYPE
from feedapp.core.feed.server import get_feed
from feedapp.schemas.feed import GoogleShoppingFeed, GenerateFeedsResponse
from feedapp.schemas.jobs import JobListResponse, JobSummary

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("/google-shopping-feeds", response_model=Optional[GoogleShoppingFeed])
async def google_shopping_feed(
    request: Request,
    handle: str = Query(..., description="Feed handle, e.g. google-shopping-feed.xml"),
    shop_url: str = Query(..., description="Storefront URL; its hostname selects the shop")
):
    """
    Get a feed with its placeholders resolved.

    Returns null when no shop has the storefront's domain or the shop has no
    feed with that handle.
    """
    settings = get_app_settings()
    ctx = await get_feed_context()
    return await get_feed(
        ctx.shops,
        ctx.feed_store,
        handle,
        shop_url,
        api_url=settings.api_root_url or str(request.base_url)
    )


@router.post(
    "/shops/{shop_id}/google-shopping-feeds/generate",
    response_model=GenerateFeedsResponse
)
async def generate_feeds_now(
    shop_id: str,
    shop: Dict = Depends(get_verified_shop),
    x_user_id: Optional[str] = Header(None, alias="X-User-Id")
):
    """Schedule an immediate feed regeneration for a shop."""
    scheduler = await get_scheduler()
    job = await scheduler.request_generation(shop_id, notify_user_id=x_user_id or "")
    logger.info(f"Manual feed generation scheduled for shop {shop_id}: job {job.id}")
    return GenerateFeedsResponse(was_job_scheduled=True)


@router.get("/shops/{shop_id}/google-shopping-feeds/jobs", response_model=JobListResponse)
async def list_feed_jobs(
    shop_id: str,
    shop: Dict = Depends(get_verified_shop)
):
    """List live feed generation jobs of a shop."""
    jobs = await get_background_jobs()
    items = [JobSummary(**job.to_summary()) for job in jobs.jobs(JOB_TYPE, {"shopId": shop_id})]
    return JobListResponse(items=items)
