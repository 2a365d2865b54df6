"""
FastAPI application entry point.
"""

import logging
from fastapi import FastAPI, HTTPException, status
from contextlib import asynccontextmanager

from feedapp.api.feeds import router as feed_file_router
from feedapp.api.v1.router import router as v1_router
from feedapp.deps import (
    get_app_settings, get_background_jobs, get_redis, get_scheduler, shutdown_dependencies
)
from feedapp.schemas.common import HealthResponse


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    # Startup
    logging.basicConfig(level=get_app_settings().log_level.upper())

    scheduler = await get_scheduler()
    await scheduler.startup()
    jobs = await get_background_jobs()
    await jobs.start()
    yield
    # Shutdown
    await shutdown_dependencies()


app = FastAPI(
    title="Google Shopping Feed API",
    description="Generates and serves per-shop Google Shopping product feeds",
    version="1.0.0",
    lifespan=lifespan
)

# Include routers
app.include_router(v1_router, prefix="/api/v1")
app.include_router(feed_file_router)


@app.get("/api/v1/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(ok=True)


@app.get("/api/v1/health/redis", tags=["health"])
async def health_check_redis():
    """Check Redis connection health."""
    if get_app_settings().storage_backend != "redis":
        return {"ok": True, "redis": "not used"}
    try:
        redis = await get_redis()
        await redis.ping()
        return {"ok": True, "redis": "connected"}
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Redis connection failed: {str(e)}"
        )


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Google Shopping Feed API",
        "version": "1.0.0",
        "docs": "/docs"
    }
