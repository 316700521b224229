"""
Content API endpoints.

This module provides REST API endpoints for the user's library:
saving links and documents, browsing and filtering them, toggling
favorites, deleting, and the synchronous enrichment trigger.

Saving a link creates a ``pending`` item immediately and hands the
enrichment to a Celery worker; the dashboard follows progress through
``processing_status`` (polling or the event stream).
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_content_processor, get_notifier
from app.core.auth import get_current_active_user
from app.db.deps import get_db
from app.models.content import (
    PLACEHOLDER_TITLE,
    CollectionItem,
    ContentItem,
    ProcessingStatus,
    SourceType,
)
from app.models.user import User
from app.schemas.content import (
    ContentCreate,
    ContentListResponse,
    ContentResponse,
    ProcessContentRequest,
    ProcessContentResponse,
)
from app.services.change_notifier import ChangeNotifier
from app.services.content_processor import (
    CONTENT_TABLE,
    FAILURE_SUMMARY_PREFIX,
    ContentProcessor,
)
from app.services.source_classifier import classify_source
from app.tasks.content_tasks import process_content_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/content", tags=["Content"])


# ========================================
# Helper Functions
# ========================================


async def _get_owned_content(db: AsyncSession, content_id: uuid.UUID, user: User) -> ContentItem:
    """
    Load a content item owned by ``user``.

    Raises:
        HTTPException 404: Missing or owned by someone else
    """
    result = await db.execute(
        select(ContentItem).where(
            ContentItem.id == content_id,
            ContentItem.user_id == user.id,
        )
    )
    item = result.scalar_one_or_none()
    if item is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content not found"
        )
    return item


def enqueue_processing(item: ContentItem) -> bool:
    """Hand the item to the enrichment worker; False if the broker refused."""
    try:
        process_content_task.delay(str(item.id), item.url, str(item.user_id))
        return True
    except Exception as e:
        logger.error(f"Failed to queue processing for content {item.id}: {e}")
        return False


# ========================================
# Create / Trigger
# ========================================


@router.post(
    "",
    response_model=ContentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a link or document"
)
async def create_content(
    request: ContentCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    """
    Save a link and start enrichment.

    The item is created ``pending`` with the placeholder title and a
    source guessed from the URL, then queued for processing.
    """
    item = ContentItem(
        user_id=current_user.id,
        url=request.url,
        title=PLACEHOLDER_TITLE,
        source=classify_source(request.url),
        content_text=request.notes,
        tags=[],
        key_takeaways=[],
        processing_status=ProcessingStatus.PENDING,
        is_favorite=False,
    )
    db.add(item)
    await db.commit()
    await db.refresh(item)

    logger.info(f"Content {item.id} created for user {current_user.id} ({item.source})")
    await notifier.publish(current_user.id, CONTENT_TABLE, "INSERT", item.id)

    if not enqueue_processing(item):
        item.processing_status = ProcessingStatus.FAILED
        item.summary = f"{FAILURE_SUMMARY_PREFIX}could not be queued, please try again"
        await db.commit()
        await db.refresh(item)
        await notifier.publish(current_user.id, CONTENT_TABLE, "UPDATE", item.id)

    return ContentResponse.model_validate(item)


@router.post(
    "/process",
    response_model=ProcessContentResponse,
    summary="Run enrichment for an item and wait for the result"
)
async def process_content(
    request: ProcessContentRequest,
    current_user: User = Depends(get_current_active_user),
    processor: ContentProcessor = Depends(get_content_processor)
):
    """
    Synchronous enrichment trigger.

    Request:  ``{"url": "...", "userId": "...", "contentId": "..."}``
    Response: ``{"success": true, "result": {...}}`` or
    ``{"success": false, "error": "..."}``

    Raises:
        HTTPException 403: ``userId`` is not the authenticated user
    """
    if request.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot process content for another user"
        )

    outcome = await processor.process(request.content_id, request.url, current_user.id)
    return ProcessContentResponse.model_validate(outcome.to_dict())


# ========================================
# Read
# ========================================


@router.get(
    "",
    response_model=ContentListResponse,
    summary="List saved content"
)
async def list_content(
    source: Optional[SourceType] = Query(None, description="Filter by source"),
    processing_status: Optional[ProcessingStatus] = Query(None, alias="status", description="Filter by status"),
    favorites_only: bool = Query(False, description="Only favorites"),
    collection_id: Optional[uuid.UUID] = Query(None, description="Only items in this collection"),
    q: Optional[str] = Query(None, max_length=200, description="Search title, summary and tags"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List the user's content, newest first.
    """
    filters = [ContentItem.user_id == current_user.id]

    if source is not None:
        filters.append(ContentItem.source == source)
    if processing_status is not None:
        filters.append(ContentItem.processing_status == processing_status)
    if favorites_only:
        filters.append(ContentItem.is_favorite.is_(True))
    if collection_id is not None:
        filters.append(
            ContentItem.id.in_(
                select(CollectionItem.content_item_id).where(
                    CollectionItem.collection_id == collection_id
                )
            )
        )
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        filters.append(
            or_(
                ContentItem.title.ilike(pattern),
                ContentItem.summary.ilike(pattern),
                cast(ContentItem.tags, String).ilike(pattern),
            )
        )

    total = await db.scalar(
        select(func.count()).select_from(ContentItem).where(*filters)
    ) or 0

    result = await db.execute(
        select(ContentItem)
        .where(*filters)
        .order_by(ContentItem.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    items = result.scalars().all()

    return ContentListResponse(
        items=[ContentResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
        has_more=page * page_size < total,
    )


@router.get(
    "/{content_id}",
    response_model=ContentResponse,
    summary="Get one content item"
)
async def get_content(
    content_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    item = await _get_owned_content(db, content_id, current_user)
    return ContentResponse.model_validate(item)


# ========================================
# Update / Delete
# ========================================


@router.post(
    "/{content_id}/favorite",
    response_model=ContentResponse,
    summary="Toggle favorite"
)
async def toggle_favorite(
    content_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    """Flip ``is_favorite``; calling it twice restores the original value."""
    item = await _get_owned_content(db, content_id, current_user)
    item.is_favorite = not item.is_favorite
    await db.commit()
    await db.refresh(item)

    await notifier.publish(current_user.id, CONTENT_TABLE, "UPDATE", item.id)
    return ContentResponse.model_validate(item)


@router.delete(
    "/{content_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a content item"
)
async def delete_content(
    content_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    """Delete the item; its collection memberships go with it."""
    item = await _get_owned_content(db, content_id, current_user)
    await db.delete(item)
    await db.commit()

    logger.info(f"Content {content_id} deleted by user {current_user.id}")
    await notifier.publish(current_user.id, CONTENT_TABLE, "DELETE", content_id)
