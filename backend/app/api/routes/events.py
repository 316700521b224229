"""
Change-notification stream.

Relays the caller's Redis channel as Server-Sent Events. Each event is
``{"table", "event", "record_id", "user_id", "at"}``; clients react by
re-reading their data, so a missed event only delays a refresh.
"""

import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from redis.asyncio import Redis

from app.core.auth import get_current_active_user
from app.db.redis import get_redis
from app.models.user import User
from app.services.change_notifier import channel_for

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])

# Seconds between keepalive comments when nothing changes
KEEPALIVE_INTERVAL = 15.0


async def relay_changes(
    redis: Redis,
    channel: str,
    request: Request,
    keepalive: float = KEEPALIVE_INTERVAL
) -> AsyncGenerator[str, None]:
    """Yield SSE frames for every message on ``channel`` until the client leaves."""
    pubsub = redis.pubsub()
    await pubsub.subscribe(channel)
    try:
        yield "retry: 5000\n\n"
        while not await request.is_disconnected():
            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=keepalive)
            if message is None:
                yield ": keepalive\n\n"
                continue
            yield f"event: change\ndata: {message['data']}\n\n"
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()


@router.get("/stream", summary="Stream change notifications")
async def stream_events(
    request: Request,
    current_user: User = Depends(get_current_active_user)
):
    """
    Server-Sent Events stream of the caller's change notifications.

    Raises:
        HTTPException 503: Redis is unavailable
    """
    try:
        redis = await get_redis()
    except Exception as e:
        logger.error(f"Event stream unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Change notifications are unavailable"
        )

    logger.info(f"Event stream opened for user {current_user.id}")
    return StreamingResponse(
        relay_changes(redis, channel_for(current_user.id), request),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
