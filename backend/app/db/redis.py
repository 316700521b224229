"""
Redis connection management.

Provides the async Redis connection used by the API process for:
- Publishing change notifications
- Subscribing to change notifications (event stream endpoint)

Celery broker/backend connections are managed by Celery itself.
Worker tasks run each job in a fresh event loop and therefore build
their own short-lived clients (see ``ChangeNotifier``).
"""

import logging
from typing import Optional

from redis.asyncio import ConnectionPool, Redis

from app.core.config import settings

logger = logging.getLogger(__name__)

# Global connection pool
_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[Redis] = None


def create_redis_client(redis_url: Optional[str] = None) -> Redis:
    """Build a standalone client; the caller owns it and must close it."""
    return Redis.from_url(
        redis_url or settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_keepalive=True,
    )


async def init_redis() -> Redis:
    """
    Initialize Redis connection pool.

    Called during application startup.
    """
    global _redis_pool, _redis_client

    if _redis_pool is None:
        logger.info("Initializing Redis connection pool")

        # Format: redis://localhost:6379/0
        _redis_pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            decode_responses=True,  # Auto-decode bytes to strings
            max_connections=20,
            socket_connect_timeout=5,
            socket_keepalive=True
        )

        _redis_client = Redis(connection_pool=_redis_pool)

        try:
            await _redis_client.ping()
            logger.info("Redis connection successful")
        except Exception as e:
            logger.error(f"Redis connection failed: {e}")
            # Next caller retries from scratch
            await _redis_pool.disconnect()
            _redis_pool, _redis_client = None, None
            raise

    return _redis_client


async def get_redis() -> Redis:
    """
    Get Redis client instance.

    Use this as a dependency in FastAPI endpoints or services.
    """
    if _redis_client is None:
        return await init_redis()
    return _redis_client


async def close_redis():
    """
    Close Redis connection pool.

    Called during application shutdown.
    """
    global _redis_pool, _redis_client

    if _redis_client:
        logger.info("Closing Redis connection")
        await _redis_client.aclose()
        _redis_client = None

    if _redis_pool:
        await _redis_pool.disconnect()
        _redis_pool = None


# ========================================
# Health Check
# ========================================

async def check_redis_health() -> bool:
    """
    Check if Redis is healthy and responsive.

    Returns:
        bool: True if Redis is healthy, False otherwise
    """
    try:
        redis = await get_redis()
        response = await redis.ping()
        return response is True
    except Exception as e:
        logger.error(f"Redis health check failed: {e}")
        return False
