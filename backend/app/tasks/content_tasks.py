"""
Celery tasks for content enrichment.

This module contains background tasks for:
- Running the enrichment pipeline for a newly saved item
- Reclaiming items left in ``processing`` by a dead worker
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import settings
from app.db.session import create_engine
from app.services.change_notifier import ChangeNotifier
from app.services.content_processor import (
    CONTENT_TABLE,
    ContentProcessor,
    reclaim_stale_processing,
)
from app.services.pipeline_config import PipelineConfig
from app.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


# ========================================
# Async Helpers
# ========================================

def run_async(coro):
    """
    Run async coroutine, handling both event loop and no event loop scenarios.

    - Celery worker (no running loop): asyncio.run()
    - Tests (pytest with a running loop): asyncio.run() in a helper thread
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    import concurrent.futures

    with concurrent.futures.ThreadPoolExecutor() as executor:
        future = executor.submit(asyncio.run, coro)
        return future.result()


@asynccontextmanager
async def worker_sessions(database_url: Optional[str] = None) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """
    Session factory on an engine private to this task run.

    Each task runs in its own event loop, and pooled asyncpg connections
    cannot cross loops.
    """
    engine = create_engine(database_url)
    try:
        yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


async def process_content_async(
    content_id: str,
    url: str,
    user_id: str,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    config: Optional[PipelineConfig] = None,
    processor: Optional[ContentProcessor] = None,
) -> Dict[str, Any]:
    """Run the pipeline for one item and return the ingestion response dict."""
    config = config or PipelineConfig.from_settings()
    notifier = ChangeNotifier(redis_url=config.store_service_key)

    try:
        if processor is not None:
            result = await processor.process(content_id, url, user_id)
        elif session_factory is not None:
            processor = ContentProcessor(session_factory, config=config, notifier=notifier)
            result = await processor.process(content_id, url, user_id)
        else:
            async with worker_sessions(config.store_url) as sessions:
                processor = ContentProcessor(sessions, config=config, notifier=notifier)
                result = await processor.process(content_id, url, user_id)
    finally:
        await notifier.aclose()

    return result.to_dict()


async def reclaim_stale_async(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    older_than_minutes: Optional[int] = None,
    notifier: Optional[ChangeNotifier] = None,
) -> Dict[str, Any]:
    """Fail every item stuck in ``processing`` past the staleness window."""
    minutes = older_than_minutes or settings.PROCESSING_STALE_AFTER_MINUTES
    notifier = notifier or ChangeNotifier(redis_url=settings.REDIS_URL)

    async def _reclaim(sessions: async_sessionmaker[AsyncSession]):
        async with sessions() as session:
            stale = await reclaim_stale_processing(session, timedelta(minutes=minutes))
            reclaimed = [(item.user_id, item.id) for item in stale]
            await session.commit()
        return reclaimed

    try:
        if session_factory is not None:
            reclaimed = await _reclaim(session_factory)
        else:
            async with worker_sessions() as sessions:
                reclaimed = await _reclaim(sessions)

        for user_id, content_id in reclaimed:
            await notifier.publish(user_id, CONTENT_TABLE, "UPDATE", content_id)
    finally:
        await notifier.aclose()

    return {
        "reclaimed": len(reclaimed),
        "content_ids": [str(content_id) for _, content_id in reclaimed],
        "older_than_minutes": minutes,
    }


# ========================================
# Tasks
# ========================================

@celery_app.task(
    name='content.process_content',
    bind=True,
    acks_late=True,
)
def process_content_task(self, content_id: str, url: str, user_id: str) -> Dict[str, Any]:
    """
    Enrich a saved item.

    Not retried: a failed run leaves the item ``failed`` with the error in
    its summary, and the user resubmits.

    Args:
        content_id: ContentItem ID (UUID string)
        url: Submitted URL
        user_id: Owning user ID (UUID string)

    Returns:
        {"success": bool, "result": {...}} or {"success": False, "error": "..."}
    """
    logger.info(f"Processing content item {content_id}")
    return run_async(process_content_async(content_id, url, user_id))


@celery_app.task(name='content.reclaim_stale_processing')
def reclaim_stale_processing_task() -> Dict[str, Any]:
    """
    Periodic task: fail items stuck in ``processing``.

    Scheduled by Celery Beat every 5 minutes.
    """
    stats = run_async(reclaim_stale_async())
    logger.info(f"Stale processing reclaim: {stats['reclaimed']} items")
    return stats
