"""
Enrichment orchestrator.

Takes a freshly submitted content item from ``pending`` to ``completed``
(or ``failed``):

1. Mark the item ``processing``
2. Start thumbnail extraction in the background
3. Fetch and clean the page; unusable pages switch to the web-search prompt
4. Ask the model for title/summary/tags/takeaways/source type
5. Parse the answer, falling back to a URL-derived record if it is unusable
6. Join the thumbnail task
7. Persist everything and mark the item ``completed``

Model and database errors anywhere after step 1 mark the item ``failed``
with the error in ``summary``. Fetch, parse and thumbnail problems never
do: they degrade to the web-search prompt, the fallback record and "no
thumbnail" respectively.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.session import AsyncSessionLocal
from app.models import ContentItem, ProcessingStatus
from app.services.change_notifier import ChangeNotifier
from app.services.content_analyzer import (
    AnalysisFields,
    ContentAnalyzer,
    ModelResponseError,
    PromptVariant,
    Recognized,
    build_fallback_analysis,
    parse_analysis,
)
from app.services.content_fetcher import ContentFetcher, FetchResult
from app.services.pipeline_config import PipelineConfig
from app.services.source_classifier import classify_source
from app.services.thumbnail_service import ThumbnailService

logger = logging.getLogger(__name__)

CONTENT_TABLE = "content_items"
FAILURE_SUMMARY_PREFIX = "Processing failed: "

IdLike = Union[str, uuid.UUID]


# ========================================
# Custom Exceptions
# ========================================


class ProcessingError(Exception):
    """Base exception for the enrichment orchestrator."""
    pass


class ContentNotFoundError(ProcessingError):
    """The item does not exist or belongs to someone else."""
    pass


class InvalidStatusTransitionError(ProcessingError):
    """The item's current status does not allow the requested move."""
    pass


# ========================================
# Result Type
# ========================================


@dataclass
class ProcessingResult:
    """Outcome of one pipeline run, shaped like the ingestion response."""

    success: bool
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        if self.result is not None:
            data["result"] = self.result
        if self.error is not None:
            data["error"] = self.error
        return data


# ========================================
# Status Helpers
# ========================================


def transition(item: ContentItem, target: ProcessingStatus) -> None:
    """
    Move ``item`` to ``target``.

    Raises:
        InvalidStatusTransitionError: The move is not allowed
    """
    current = ProcessingStatus(item.processing_status)
    if not current.can_transition_to(target):
        raise InvalidStatusTransitionError(
            f"Content {item.id} cannot move from {current.value} to {target.value}"
        )
    item.processing_status = target


def to_uuid(value: IdLike) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise ContentNotFoundError(f"Invalid identifier: {value!r}")


async def load_owned_item(
    session: AsyncSession,
    content_id: IdLike,
    user_id: IdLike
) -> ContentItem:
    """
    Load a content item scoped to its owner.

    Raises:
        ContentNotFoundError: Missing, or owned by another user
    """
    content_uuid = to_uuid(content_id)
    result = await session.execute(
        select(ContentItem).where(
            ContentItem.id == content_uuid,
            ContentItem.user_id == to_uuid(user_id),
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise ContentNotFoundError(f"Content {content_uuid} not found")
    return item


async def reclaim_stale_processing(
    session: AsyncSession,
    older_than: timedelta,
    now: Optional[datetime] = None
) -> List[ContentItem]:
    """
    Fail items that have sat in ``processing`` longer than ``older_than``.

    A worker that dies between marking an item ``processing`` and its
    error handler leaves the item there forever; this is the recovery.
    Items are not re-queued. The caller commits.

    Returns:
        The items that were moved to ``failed``
    """
    cutoff = (now or datetime.now(timezone.utc)) - older_than
    result = await session.execute(
        select(ContentItem).where(
            ContentItem.processing_status == ProcessingStatus.PROCESSING,
            ContentItem.updated_at < cutoff,
        )
    )
    stale = list(result.scalars().all())

    minutes = int(older_than.total_seconds() // 60)
    for item in stale:
        item.processing_status = ProcessingStatus.FAILED
        item.summary = (
            f"{FAILURE_SUMMARY_PREFIX}no progress for over {minutes} minutes; "
            "the worker handling this item stopped. Please submit it again."
        )

    if stale:
        logger.warning(f"Reclaimed {len(stale)} content items stuck in processing")
    return stale


# ========================================
# Orchestrator
# ========================================


class ContentProcessor:
    """
    Runs the enrichment pipeline for one content item at a time.

    Every collaborator can be injected; the defaults are built from
    ``PipelineConfig.from_settings()``.

    Usage:
    ------
    processor = ContentProcessor(config=PipelineConfig.from_settings())
    result = await processor.process(content_id, url, user_id)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
        config: Optional[PipelineConfig] = None,
        analyzer: Optional[ContentAnalyzer] = None,
        fetcher: Optional[ContentFetcher] = None,
        thumbnails: Optional[ThumbnailService] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self.session_factory = session_factory
        self.config = config or PipelineConfig.from_settings()
        self.analyzer = analyzer or ContentAnalyzer(self.config)
        self.fetcher = fetcher or ContentFetcher(self.config)
        self.thumbnails = thumbnails or ThumbnailService(self.config)
        self.notifier = notifier or ChangeNotifier(redis_url=self.config.store_service_key)

    async def process(self, content_id: IdLike, url: str, user_id: IdLike) -> ProcessingResult:
        """
        Enrich one content item.

        Args:
            content_id: Item to enrich (must be ``pending``)
            url: Submitted URL
            user_id: Owner; items owned by anyone else are not touched

        Returns:
            ProcessingResult with the analysis on success, the error otherwise
        """
        logger.info(f"Starting content processing for {content_id}")

        # Ownership and status are checked before anything can be marked failed
        try:
            await self._start(content_id, user_id)
        except ProcessingError as e:
            logger.warning(f"Content {content_id} not processed: {e}")
            return ProcessingResult(success=False, error=str(e))
        except SQLAlchemyError as e:
            # Still pending; nothing to mark failed
            logger.error(f"Could not start processing {content_id}: {e}", exc_info=True)
            return ProcessingResult(success=False, error=f"Database error: {e}")

        thumbnail_task: Optional[asyncio.Task] = None
        try:
            thumbnail_task = asyncio.create_task(self.thumbnails.extract_thumbnail_async(url))

            fetched = await self.fetcher.fetch_and_clean_async(url)
            fields = await self._analyze(content_id, url, fetched)

            thumbnail_url = await thumbnail_task
            logger.info(f"Thumbnail for {content_id}: {thumbnail_url}")

            await self._complete(content_id, user_id, fields, fetched, thumbnail_url)

        except Exception as e:
            logger.error(f"Error processing content {content_id}: {e}", exc_info=True)
            if thumbnail_task is not None and not thumbnail_task.done():
                thumbnail_task.cancel()
            await self.mark_failed(content_id, user_id, str(e))
            return ProcessingResult(success=False, error=str(e))

        logger.info(f"Content {content_id} processed successfully")
        return ProcessingResult(success=True, result=fields.to_dict())

    # ========================================
    # Steps
    # ========================================

    async def _start(self, content_id: IdLike, user_id: IdLike) -> None:
        async with self.session_factory() as session:
            item = await load_owned_item(session, content_id, user_id)
            transition(item, ProcessingStatus.PROCESSING)
            await session.commit()

        logger.info(f"Content {content_id} moved to processing")
        await self.notifier.publish(user_id, CONTENT_TABLE, "UPDATE", content_id)

    async def _analyze(self, content_id: IdLike, url: str, fetched: FetchResult) -> AnalysisFields:
        if fetched.usable:
            variant, payload = PromptVariant.DIRECT, fetched.text
        else:
            logger.info(f"Content {content_id} unusable ({fetched.reason}); using web search")
            variant, payload = PromptVariant.WEB_SEARCH, url

        try:
            raw = await self.analyzer.analyze(variant, payload)
        except ModelResponseError as e:
            # No text at all is treated like an unparseable answer
            logger.warning(f"Model response for {content_id} had no text ({e}); using fallback")
            return build_fallback_analysis(url)

        parsed = parse_analysis(raw, default_source=classify_source(url))

        if isinstance(parsed, Recognized):
            return parsed.fields

        logger.warning(f"Model response for {content_id} unrecognized ({parsed.reason}); using fallback")
        return build_fallback_analysis(url)

    async def _complete(
        self,
        content_id: IdLike,
        user_id: IdLike,
        fields: AnalysisFields,
        fetched: FetchResult,
        thumbnail_url: Optional[str]
    ) -> None:
        async with self.session_factory() as session:
            item = await load_owned_item(session, content_id, user_id)
            transition(item, ProcessingStatus.COMPLETED)

            item.title = fields.title
            item.summary = fields.summary
            item.tags = list(fields.tags)
            item.key_takeaways = list(fields.key_takeaways)
            item.source = fields.source_type
            item.thumbnail_url = thumbnail_url
            # Notes entered at submission stay when there is no page text
            if fetched.usable:
                item.content_text = fetched.text[:self.config.stored_text_chars]

            await session.commit()

        logger.info(f"Content {content_id} moved to completed")
        await self.notifier.publish(user_id, CONTENT_TABLE, "UPDATE", content_id)

    async def mark_failed(self, content_id: IdLike, user_id: IdLike, message: str) -> bool:
        """
        Best-effort move to ``failed`` with ``message`` in the summary.

        Returns:
            True if the item was updated
        """
        try:
            async with self.session_factory() as session:
                item = await load_owned_item(session, content_id, user_id)
                if not ProcessingStatus(item.processing_status).can_transition_to(ProcessingStatus.FAILED):
                    logger.info(f"Content {content_id} already failed; leaving it")
                    return False

                item.processing_status = ProcessingStatus.FAILED
                item.summary = f"{FAILURE_SUMMARY_PREFIX}{message}"
                await session.commit()

        except Exception as e:
            logger.error(f"Failed to update error status for {content_id}: {e}")
            return False

        await self.notifier.publish(user_id, CONTENT_TABLE, "UPDATE", content_id)
        return True
