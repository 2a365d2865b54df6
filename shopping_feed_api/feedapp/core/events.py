"""
Job state and user notifications stored in Redis.
"""

import json
import logging
from typing import Dict, Optional, Any
from datetime import datetime, timezone
import redis.asyncio as aioredis


logger = logging.getLogger(__name__)

# Job state and notifications expire after 24 hours
STATE_TTL = 86400


class JobStateManager:
    """Mirror background job state to Redis so operators can inspect it."""

    def __init__(self, redis_client: aioredis.Redis):
        """
        Initialize job state manager.

        Args:
            redis_client: Redis async client
        """
        self.redis = redis_client

    @staticmethod
    def _state_key(job_id: str) -> str:
        return f"job:{job_id}:state"

    async def record(self, job_id: str, state: Dict[str, Any]) -> None:
        """
        Write the current state of a job.

        Args:
            job_id: Job ID
            state: Job fields; dict/list values are stored as JSON strings
        """
        serialized = {}
        for k, v in state.items():
            if isinstance(v, (dict, list)):
                serialized[k] = json.dumps(v)
            else:
                serialized[k] = str(v) if v is not None else ""
        serialized["updated_at"] = datetime.now(timezone.utc).isoformat()

        key = self._state_key(job_id)
        await self.redis.hset(key, mapping=serialized)
        await self.redis.expire(key, STATE_TTL)

    async def get_job_state(self, job_id: str) -> Optional[Dict[str, Any]]:
        """
        Get job state.

        Args:
            job_id: Job ID

        Returns:
            Job state dict or None if not found
        """
        state = await self.redis.hgetall(self._state_key(job_id))
        if not state:
            return None

        for field in ("data", "retry"):
            if state.get(field):
                try:
                    state[field] = json.loads(state[field])
                except json.JSONDecodeError:
                    pass
        return state


class NotificationEmitter:
    """Emit user notifications to a Redis stream per account."""

    def __init__(self, redis_client: Optional[aioredis.Redis] = None):
        """
        Initialize notification emitter.

        Args:
            redis_client: Redis async client. Without one, notifications are only logged.
        """
        self.redis = redis_client

    async def create_notification(
        self,
        account_id: str,
        type: str,
        message: str,
        url: Optional[str] = None
    ) -> None:
        """
        Emit a notification for one account.

        Args:
            account_id: Account to notify
            type: Notification type
            message: Message shown to the user
            url: Optional link for the notification
        """
        logger.info(f"Notify account {account_id}: {type} - {message}")
        if self.redis is None:
            return

        stream_key = f"notifications:{account_id}"
        await self.redis.xadd(stream_key, {
            "event": "notification",
            "data": json.dumps({
                "ts": datetime.now(timezone.utc).isoformat(),
                "type": type,
                "message": message,
                "url": url
            })
        })
        await self.redis.expire(stream_key, STATE_TTL)
