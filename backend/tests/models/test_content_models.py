"""
Tests for the content models.

Covers the processing status state machine, column defaults and the
collection membership constraints.
"""

import pytest
from sqlalchemy import func, inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    DEFAULT_COLLECTION_COLOR,
    PLACEHOLDER_TITLE,
    Collection,
    CollectionItem,
    ContentItem,
    ProcessingStatus,
    SourceType,
    User,
)


# ========================================
# ProcessingStatus
# ========================================

class TestProcessingStatus:
    """The enrichment lifecycle only moves forward."""

    @pytest.mark.parametrize("current,target", [
        (ProcessingStatus.PENDING, ProcessingStatus.PROCESSING),
        (ProcessingStatus.PROCESSING, ProcessingStatus.COMPLETED),
        (ProcessingStatus.PENDING, ProcessingStatus.FAILED),
        (ProcessingStatus.PROCESSING, ProcessingStatus.FAILED),
        (ProcessingStatus.COMPLETED, ProcessingStatus.FAILED),
    ])
    def test_allowed_transitions(self, current, target):
        assert current.can_transition_to(target)

    @pytest.mark.parametrize("current,target", [
        (ProcessingStatus.PENDING, ProcessingStatus.COMPLETED),
        (ProcessingStatus.PROCESSING, ProcessingStatus.PENDING),
        (ProcessingStatus.COMPLETED, ProcessingStatus.PENDING),
        (ProcessingStatus.COMPLETED, ProcessingStatus.PROCESSING),
        (ProcessingStatus.FAILED, ProcessingStatus.PENDING),
        (ProcessingStatus.FAILED, ProcessingStatus.PROCESSING),
        (ProcessingStatus.FAILED, ProcessingStatus.FAILED),
    ])
    def test_forbidden_transitions(self, current, target):
        assert not current.can_transition_to(target)

    def test_terminal_states(self):
        assert ProcessingStatus.COMPLETED.is_terminal
        assert ProcessingStatus.FAILED.is_terminal
        assert not ProcessingStatus.PENDING.is_terminal
        assert not ProcessingStatus.PROCESSING.is_terminal

    def test_string_values(self):
        assert str(ProcessingStatus.PENDING) == "pending"
        assert str(SourceType.YOUTUBE) == "youtube"


# ========================================
# ContentItem
# ========================================

@pytest.mark.asyncio
class TestContentItem:

    async def test_defaults(self, db_session: AsyncSession, test_user: User):
        item = ContentItem(user_id=test_user.id, url="https://example.com/post")
        db_session.add(item)
        await db_session.commit()
        await db_session.refresh(item)

        assert item.id is not None
        assert item.title == PLACEHOLDER_TITLE
        assert item.processing_status == ProcessingStatus.PENDING
        assert item.source == SourceType.WEB
        assert item.tags == []
        assert item.key_takeaways == []
        assert item.is_favorite is False
        assert item.created_at is not None

    async def test_enum_values_stored_lowercase(self, db_session: AsyncSession, test_user: User):
        item = ContentItem(
            user_id=test_user.id,
            url="https://youtu.be/abc123",
            source=SourceType.YOUTUBE,
            processing_status=ProcessingStatus.PROCESSING,
        )
        db_session.add(item)
        await db_session.commit()

        raw = await db_session.execute(
            select(ContentItem.__table__.c.source, ContentItem.__table__.c.processing_status)
        )
        assert raw.one() == ("youtube", "processing")

    async def test_json_lists_round_trip(self, db_session: AsyncSession, test_user: User):
        item = ContentItem(
            user_id=test_user.id,
            url="https://example.com/post",
            tags=["python", "async"],
            key_takeaways=["Use asyncio.to_thread for blocking calls"],
        )
        db_session.add(item)
        await db_session.commit()
        db_session.expire_all()

        loaded = await db_session.get(ContentItem, item.id)
        assert loaded.tags == ["python", "async"]
        assert loaded.key_takeaways == ["Use asyncio.to_thread for blocking calls"]

    async def test_deleting_user_deletes_content(self, db_session: AsyncSession, test_user: User):
        db_session.add(ContentItem(user_id=test_user.id, url="https://example.com/a"))
        await db_session.commit()

        await db_session.delete(test_user)
        await db_session.commit()

        count = await db_session.scalar(select(func.count()).select_from(ContentItem))
        assert count == 0


# ========================================
# Collections
# ========================================

@pytest.mark.asyncio
class TestCollections:

    async def test_default_color(self, db_session: AsyncSession, test_user: User):
        collection = Collection(user_id=test_user.id, name="Reading list")
        db_session.add(collection)
        await db_session.commit()

        assert collection.color == DEFAULT_COLLECTION_COLOR

    async def test_item_unique_per_collection(self, db_session: AsyncSession, test_user: User, make_content):
        item = await make_content(test_user)
        collection = Collection(user_id=test_user.id, name="Reading list")
        db_session.add(collection)
        await db_session.commit()

        db_session.add(CollectionItem(collection_id=collection.id, content_item_id=item.id))
        await db_session.commit()

        db_session.add(CollectionItem(collection_id=collection.id, content_item_id=item.id))
        with pytest.raises(IntegrityError):
            await db_session.commit()
        await db_session.rollback()

    async def test_deleting_content_removes_membership(
        self,
        db_session: AsyncSession,
        test_user: User,
        make_content
    ):
        item = await make_content(test_user)
        collection = Collection(user_id=test_user.id, name="Reading list")
        db_session.add(collection)
        await db_session.commit()
        db_session.add(CollectionItem(collection_id=collection.id, content_item_id=item.id))
        await db_session.commit()

        await db_session.delete(item)
        await db_session.commit()

        count = await db_session.scalar(select(func.count()).select_from(CollectionItem))
        assert count == 0
        assert await db_session.get(Collection, collection.id) is not None


# ========================================
# Relationship Loading
# ========================================

@pytest.mark.parametrize("model", [User, ContentItem, Collection, CollectionItem])
def test_relationships_use_supported_loaders(model):
    for relationship in inspect(model).relationships:
        assert relationship.lazy != "noload", f"{model.__name__}.{relationship.key}"
