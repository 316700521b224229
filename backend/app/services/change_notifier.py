"""
Change notifications for the dashboard.

Every write to a user's rows is announced on the Redis channel
``changes:<user_id>``. Subscribers (the event stream endpoint) treat a
message as "something changed, re-read": there is no ordering guarantee
relative to the write and a lost message only delays a refresh.
Publishing therefore never raises.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Union

from redis.asyncio import Redis

from app.db.redis import create_redis_client

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "changes:"

IdLike = Union[str, uuid.UUID]


def channel_for(user_id: IdLike) -> str:
    """Redis channel carrying ``user_id``'s change notifications."""
    return f"{CHANNEL_PREFIX}{user_id}"


class ChangeNotifier:
    """
    Publishes row-change notifications.

    Either hand in a shared client (API process) or a URL; a client
    built from a URL is owned by the notifier and closed by ``aclose``.

    Example:
        >>> notifier = ChangeNotifier(redis_url="redis://localhost:6379/0")
        >>> await notifier.publish(user_id, "content_items", "UPDATE", content_id)
        >>> await notifier.aclose()
    """

    def __init__(self, redis: Optional[Redis] = None, redis_url: Optional[str] = None):
        self._redis = redis
        self._redis_url = redis_url
        self._owns_client = redis is None

    def _client(self) -> Redis:
        if self._redis is None:
            self._redis = create_redis_client(self._redis_url)
        return self._redis

    async def publish(
        self,
        user_id: IdLike,
        table: str,
        event: str,
        record_id: Optional[IdLike] = None
    ) -> bool:
        """
        Announce a change to one of ``user_id``'s rows.

        Args:
            user_id: Owning user
            table: Table name (e.g. "content_items")
            event: INSERT, UPDATE or DELETE
            record_id: Changed row, when known

        Returns:
            True if the message was handed to Redis
        """
        message = json.dumps({
            "table": table,
            "event": event,
            "record_id": str(record_id) if record_id is not None else None,
            "user_id": str(user_id),
            "at": datetime.now(timezone.utc).isoformat(),
        })

        try:
            await self._client().publish(channel_for(user_id), message)
            return True
        except Exception as e:
            logger.warning(f"Change notification for {table}/{record_id} not published: {e}")
            return False

    async def aclose(self) -> None:
        if self._owns_client and self._redis is not None:
            try:
                await self._redis.aclose()
            except Exception as e:
                logger.debug(f"Closing notifier Redis client failed: {e}")
            self._redis = None


class NullNotifier(ChangeNotifier):
    """Notifier that drops every message."""

    def __init__(self):
        super().__init__()

    async def publish(self, user_id, table, event, record_id=None) -> bool:
        return False

    async def aclose(self) -> None:
        return None
