"""
Collection API endpoints.

Collections are user-defined groups of content items. ``item_count`` is
derived from the join table whenever a collection is returned.
"""

import logging
import uuid
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_notifier
from app.core.auth import get_current_active_user
from app.db.deps import get_db
from app.models.content import Collection, CollectionItem, ContentItem
from app.models.user import User
from app.schemas.collection import (
    CollectionCreate,
    CollectionItemsAdd,
    CollectionItemsAddResponse,
    CollectionResponse,
    CollectionUpdate,
)
from app.services.change_notifier import ChangeNotifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/collections", tags=["Collections"])

COLLECTIONS_TABLE = "collections"
COLLECTION_ITEMS_TABLE = "collection_items"


# ========================================
# Helper Functions
# ========================================


async def _get_owned_collection(db: AsyncSession, collection_id: uuid.UUID, user: User) -> Collection:
    """
    Raises:
        HTTPException 404: Missing or owned by someone else
    """
    result = await db.execute(
        select(Collection).where(
            Collection.id == collection_id,
            Collection.user_id == user.id,
        )
    )
    collection = result.scalar_one_or_none()
    if collection is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Collection not found"
        )
    return collection


async def _item_counts(db: AsyncSession, collection_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
    if not collection_ids:
        return {}
    result = await db.execute(
        select(CollectionItem.collection_id, func.count(CollectionItem.id))
        .where(CollectionItem.collection_id.in_(collection_ids))
        .group_by(CollectionItem.collection_id)
    )
    return {collection_id: count for collection_id, count in result.all()}


async def _to_response(db: AsyncSession, collection: Collection) -> CollectionResponse:
    counts = await _item_counts(db, [collection.id])
    response = CollectionResponse.model_validate(collection)
    response.item_count = counts.get(collection.id, 0)
    return response


# ========================================
# Collection CRUD
# ========================================


@router.post(
    "",
    response_model=CollectionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a collection"
)
async def create_collection(
    request: CollectionCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    collection = Collection(
        user_id=current_user.id,
        name=request.name,
        description=request.description,
        color=request.color,
    )
    db.add(collection)
    await db.commit()
    await db.refresh(collection)

    logger.info(f"Collection {collection.id} created for user {current_user.id}")
    await notifier.publish(current_user.id, COLLECTIONS_TABLE, "INSERT", collection.id)

    response = CollectionResponse.model_validate(collection)
    response.item_count = 0
    return response


@router.get(
    "",
    response_model=List[CollectionResponse],
    summary="List collections"
)
async def list_collections(
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    """List the user's collections, newest first, with item counts."""
    result = await db.execute(
        select(Collection)
        .where(Collection.user_id == current_user.id)
        .order_by(Collection.created_at.desc())
    )
    collections = result.scalars().all()
    counts = await _item_counts(db, [collection.id for collection in collections])

    responses = []
    for collection in collections:
        response = CollectionResponse.model_validate(collection)
        response.item_count = counts.get(collection.id, 0)
        responses.append(response)
    return responses


@router.get(
    "/{collection_id}",
    response_model=CollectionResponse,
    summary="Get one collection"
)
async def get_collection(
    collection_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db)
):
    collection = await _get_owned_collection(db, collection_id, current_user)
    return await _to_response(db, collection)


@router.patch(
    "/{collection_id}",
    response_model=CollectionResponse,
    summary="Update a collection"
)
async def update_collection(
    collection_id: uuid.UUID,
    request: CollectionUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    collection = await _get_owned_collection(db, collection_id, current_user)

    for field_name, value in request.model_dump(exclude_unset=True).items():
        # name and color are NOT NULL
        if value is None and field_name in ("name", "color"):
            continue
        setattr(collection, field_name, value)

    await db.commit()
    await db.refresh(collection)

    await notifier.publish(current_user.id, COLLECTIONS_TABLE, "UPDATE", collection.id)
    return await _to_response(db, collection)


@router.delete(
    "/{collection_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a collection"
)
async def delete_collection(
    collection_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    """Delete the collection; its content items are kept."""
    collection = await _get_owned_collection(db, collection_id, current_user)
    await db.delete(collection)
    await db.commit()

    logger.info(f"Collection {collection_id} deleted by user {current_user.id}")
    await notifier.publish(current_user.id, COLLECTIONS_TABLE, "DELETE", collection_id)


# ========================================
# Membership
# ========================================


@router.post(
    "/{collection_id}/items",
    response_model=CollectionItemsAddResponse,
    summary="Add content items to a collection"
)
async def add_collection_items(
    collection_id: uuid.UUID,
    request: CollectionItemsAdd,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    """
    Place content items in a collection.

    Items already in the collection are skipped.

    Raises:
        HTTPException 404: Collection, or any of the items, not found
    """
    collection = await _get_owned_collection(db, collection_id, current_user)
    requested = list(dict.fromkeys(request.content_ids))

    owned = await db.execute(
        select(ContentItem.id).where(
            ContentItem.id.in_(requested),
            ContentItem.user_id == current_user.id,
        )
    )
    owned_ids = set(owned.scalars().all())
    missing = [str(content_id) for content_id in requested if content_id not in owned_ids]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Content not found: {', '.join(missing)}"
        )

    existing = await db.execute(
        select(CollectionItem.content_item_id).where(
            CollectionItem.collection_id == collection.id,
            CollectionItem.content_item_id.in_(requested),
        )
    )
    already_present = set(existing.scalars().all())

    to_add = [content_id for content_id in requested if content_id not in already_present]
    for content_id in to_add:
        db.add(CollectionItem(collection_id=collection.id, content_item_id=content_id))
    await db.commit()

    if to_add:
        await notifier.publish(current_user.id, COLLECTION_ITEMS_TABLE, "INSERT", collection.id)

    counts = await _item_counts(db, [collection.id])
    return CollectionItemsAddResponse(
        added=len(to_add),
        skipped=len(request.content_ids) - len(to_add),
        item_count=counts.get(collection.id, 0),
    )


@router.delete(
    "/{collection_id}/items/{content_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a content item from a collection"
)
async def remove_collection_item(
    collection_id: uuid.UUID,
    content_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_notifier)
):
    """
    Raises:
        HTTPException 404: Collection missing, or the item is not in it
    """
    collection = await _get_owned_collection(db, collection_id, current_user)

    result = await db.execute(
        select(CollectionItem).where(
            CollectionItem.collection_id == collection.id,
            CollectionItem.content_item_id == content_id,
        )
    )
    link = result.scalar_one_or_none()
    if link is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Content is not in this collection"
        )

    await db.delete(link)
    await db.commit()

    await notifier.publish(current_user.id, COLLECTION_ITEMS_TABLE, "DELETE", collection.id)
