"""
Background job lifecycle of feed regeneration.
"""

import asyncio
import logging
from typing import Dict

from feedapp.core.jobs import BackgroundJobs, Job, RetryPolicy, parse_schedule
from .service import FeedContext, generate_feeds


logger = logging.getLogger(__name__)

JOB_TYPE = "googleShoppingFeeds/generate"
WORK_TIMEOUT = 180  # seconds
RETRY_POLICY = RetryPolicy(retries=5, wait=60, backoff="exponential")


class RegenerationScheduler:
    """
    Keeps one recurring regeneration job per shop and runs manual requests.

    Cancelling and scheduling for a shop happen under that shop's lock, so a
    stale job and its replacement never coexist. Different shops do not wait
    on each other.
    """

    def __init__(self, jobs: BackgroundJobs, ctx: FeedContext):
        self.jobs = jobs
        self.ctx = ctx
        self._locks: Dict[str, asyncio.Lock] = {}

    def _lock_for(self, shop_id: str) -> asyncio.Lock:
        return self._locks.setdefault(shop_id, asyncio.Lock())

    async def update_task_for_shop(self, shop_id: str) -> Job:
        """
        Replace the recurring job of a shop using its refresh period.

        Only jobs of this type AND this shop are cancelled; other shops keep
        their jobs. A stored period that cannot be parsed is replaced by the
        application default.
        """
        settings = await self.ctx.shop_settings.get(shop_id)
        refresh_period = settings.google_shopping_feed_refresh_period
        try:
            parse_schedule(refresh_period)
        except ValueError:
            default_period = self.ctx.shop_settings.defaults["google_shopping_feed_refresh_period"]
            logger.warning(
                f"Invalid refresh period {refresh_period!r} for shop {shop_id}, using {default_period!r}"
            )
            refresh_period = default_period

        logger.debug(f"Adding {JOB_TYPE} job for shop {shop_id}. Refresh {refresh_period}")

        async with self._lock_for(shop_id):
            await self.jobs.cancel_jobs(JOB_TYPE, {"shopId": shop_id})
            return await self.jobs.schedule_job(
                JOB_TYPE,
                {"shopId": shop_id},
                retry=RETRY_POLICY,
                schedule=refresh_period
            )

    async def request_generation(self, shop_id: str, notify_user_id: str = "") -> Job:
        """Schedule an immediate one-shot regeneration, replacing an identical pending request."""
        data = {"shopId": shop_id, "notifyUserId": notify_user_id}
        async with self._lock_for(shop_id):
            await self.jobs.cancel_jobs(JOB_TYPE, data)
            return await self.jobs.schedule_job(JOB_TYPE, data)

    async def work(self, job: Job) -> None:
        """Worker: regenerate the feed of the job's shop."""
        shop_id = job.data["shopId"]
        notify_user_id = job.data.get("notifyUserId", "")

        try:
            await generate_feeds(self.ctx, [shop_id], notify_user_id=notify_user_id)
            job.done(f"{JOB_TYPE} job done", repeat_id=True)
        except Exception as e:
            logger.error(f"Feed job {job.id} for shop {shop_id} failed: {e}", exc_info=True)
            job.fail(f"Failed to generate Google Shopping feed. Error: {e}")

    async def startup(self) -> None:
        """Register the worker, then arm one recurring job per known shop."""
        await self.jobs.add_worker(JOB_TYPE, WORK_TIMEOUT, self.work)

        shops = await self.ctx.shops.find()
        results = await asyncio.gather(*(self._arm_shop(shop["id"]) for shop in shops))
        logger.info(f"Scheduled {JOB_TYPE} for {sum(results)} of {len(shops)} shop(s)")

    async def _arm_shop(self, shop_id: str) -> bool:
        try:
            await self.update_task_for_shop(shop_id)
            return True
        except Exception as e:
            logger.error(f"Could not schedule {JOB_TYPE} for shop {shop_id}: {e}", exc_info=True)
            return False
