"""
Dependency injection for FastAPI.
"""

from typing import Dict, Optional
import redis.asyncio as aioredis
from fastapi import HTTPException, status

from feedapp.config import get_settings
from feedapp.core.events import JobStateManager, NotificationEmitter
from feedapp.core.feed.scheduler import RegenerationScheduler
from feedapp.core.feed.service import FeedContext
from feedapp.core.feed.store import FeedStore
from feedapp.core.jobs import BackgroundJobs
from feedapp.core.shop_settings import ShopSettingsStore
from feedapp.core.store import DocumentCollection, InMemoryCollection, RedisCollection


# Lazy load settings to avoid blocking on startup
_settings = None

def get_app_settings():
    """Lazy get settings."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


_redis_client: Optional[aioredis.Redis] = None
_feed_context: Optional[FeedContext] = None
_background_jobs: Optional[BackgroundJobs] = None
_scheduler: Optional[RegenerationScheduler] = None


async def get_redis() -> aioredis.Redis:
    """Get Redis client (singleton) with lazy connection."""
    global _redis_client
    if _redis_client is None:
        settings = get_app_settings()
        _redis_client = aioredis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=1.0,
            socket_timeout=3.0,
            retry_on_timeout=True,
            health_check_interval=30,
            socket_keepalive=True
        )
    return _redis_client


async def close_redis():
    """Close Redis connection."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _uses_redis() -> bool:
    return get_app_settings().storage_backend == "redis"


async def _collection(name: str) -> DocumentCollection:
    if _uses_redis():
        return RedisCollection(await get_redis(), name)
    return InMemoryCollection(name)


async def get_feed_context() -> FeedContext:
    """Get the collections and collaborators of feed generation (singleton)."""
    global _feed_context
    if _feed_context is None:
        settings = get_app_settings()
        notifier = NotificationEmitter(await get_redis() if _uses_redis() else None)
        _feed_context = FeedContext(
            shops=await _collection("Shops"),
            catalog=await _collection("Catalog"),
            shipping=await _collection("Shipping"),
            feed_store=FeedStore(await _collection("GoogleShoppingFeeds")),
            shop_settings=ShopSettingsStore(await _collection("AppSettings"), settings),
            notifier=notifier,
            feed_handle=settings.feed_handle
        )
    return _feed_context


async def get_background_jobs() -> BackgroundJobs:
    """Get the job queue (singleton)."""
    global _background_jobs
    if _background_jobs is None:
        state_manager = JobStateManager(await get_redis()) if _uses_redis() else None
        _background_jobs = BackgroundJobs(state_manager=state_manager)
    return _background_jobs


async def get_scheduler() -> RegenerationScheduler:
    """Get the feed regeneration scheduler (singleton)."""
    global _scheduler
    if _scheduler is None:
        _scheduler = RegenerationScheduler(await get_background_jobs(), await get_feed_context())
    return _scheduler


async def shutdown_dependencies():
    """Stop background jobs and drop every singleton."""
    global _feed_context, _background_jobs, _scheduler, _settings
    if _background_jobs is not None:
        await _background_jobs.stop()
    _feed_context = None
    _background_jobs = None
    _scheduler = None
    _settings = None
    await close_redis()


async def get_shop_by_id(shop_id: str) -> Dict:
    """
    Get shop document by id.

    Raises:
        HTTPException: If shop not found.
    """
    ctx = await get_feed_context()
    shop = await ctx.shops.find_one({"id": shop_id})
    if not shop:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Shop '{shop_id}' not found"
        )
    return shop
