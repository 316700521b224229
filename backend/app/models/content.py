"""
Content Models

This module contains the content-related models for the Curio application.

Models Included:
----------------
1. ContentItem - A URL or document the user saved, plus its AI enrichment
2. Collection - A user-defined group of content items
3. CollectionItem - Join row pairing one ContentItem with one Collection
4. SourceType (Enum) - Platform classification of a content item
5. ProcessingStatus (Enum) - Enrichment lifecycle state

Database Tables:
----------------
- content_items: Saved links/documents with title, summary, tags, takeaways
- collections: Named, colored groupings owned by a user
- collection_items: Many-to-many junction between the two

Relationships:
--------------
- User (1) ←→ (Many) ContentItem
- User (1) ←→ (Many) Collection
- ContentItem (Many) ←→ (Many) Collection via CollectionItem

Learning Resources:
-------------------
- Many-to-Many: https://docs.sqlalchemy.org/en/20/orm/basic_relationships.html#many-to-many
- Association Object: https://docs.sqlalchemy.org/en/20/orm/basic_relationships.html#association-object
"""

import enum
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Enum, ForeignKey, Index, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import BaseModel, JSONList, String50, String100, String500, String2048

if TYPE_CHECKING:
    from app.models.user import User


# ================================
# Enums
# ================================

class SourceType(str, enum.Enum):
    """
    Platform a content item came from.

    Assigned at submission by the source classifier and possibly
    corrected by the model during enrichment.
    """

    WEB = "web"
    YOUTUBE = "youtube"
    LINKEDIN = "linkedin"
    MEDIUM = "medium"
    SUBSTACK = "substack"
    DOCUMENT = "document"

    def __str__(self) -> str:
        """Return the string value of the enum."""
        return self.value


class ProcessingStatus(str, enum.Enum):
    """
    Enrichment lifecycle of a content item.

    Status Flow:
    ------------
    PENDING → PROCESSING → COMPLETED (success path)
        ↓          ↓           ↓
      FAILED     FAILED      FAILED

    PENDING is set at submission, PROCESSING is entered as the first
    pipeline action. COMPLETED and FAILED are terminal: the status only
    moves forward, except that any state may drop to FAILED. An item
    never goes back to PENDING.

    Example Queries:
    ----------------
    # Items stuck mid-pipeline
    stuck = select(ContentItem).where(
        ContentItem.processing_status == ProcessingStatus.PROCESSING
    )
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    def __str__(self) -> str:
        """Return the string value of the enum."""
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStatus.COMPLETED, ProcessingStatus.FAILED)

    def can_transition_to(self, target: "ProcessingStatus") -> bool:
        """Whether moving from this status to ``target`` is allowed."""
        if target == ProcessingStatus.FAILED:
            return self != ProcessingStatus.FAILED
        return target in _FORWARD_TRANSITIONS[self]


_FORWARD_TRANSITIONS: dict[ProcessingStatus, frozenset[ProcessingStatus]] = {
    ProcessingStatus.PENDING: frozenset({ProcessingStatus.PROCESSING}),
    ProcessingStatus.PROCESSING: frozenset({ProcessingStatus.COMPLETED}),
    ProcessingStatus.COMPLETED: frozenset(),
    ProcessingStatus.FAILED: frozenset(),
}


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    # Store the lowercase values ("youtube"), not the member names
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=20,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


# ================================
# ContentItem Model
# ================================

PLACEHOLDER_TITLE = "Processing..."


class ContentItem(BaseModel):
    """
    Content item model - a link or document a user saved.

    Table: content_items
    --------------------
    Each content item is owned by exactly one user.

    Lifecycle:
    ----------
    1. SUBMISSION: Row created with title "Processing..." (status: PENDING)
    2. ENRICHMENT: The pipeline fetches the page, asks the model for
       title/summary/tags/takeaways and extracts a thumbnail
       (status: PROCESSING)
    3. DONE: Fields overwritten with the enrichment (status: COMPLETED),
       or the error is written into ``summary`` (status: FAILED)
    4. DELETION: Only by explicit user action

    ``url`` never changes after creation. ``tags`` and ``key_takeaways``
    are JSON arrays and are never NULL.
    """

    __tablename__ = "content_items"

    # ================================
    # Ownership
    # ================================

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning user"
    )
    # Every query filters on this column

    # ================================
    # Content Information
    # ================================

    title: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=PLACEHOLDER_TITLE,
        comment="Title; a placeholder until enrichment finishes"
    )

    summary: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="2-3 sentence summary, or the failure diagnostic"
    )

    content_text: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        comment="User notes at submission, then the start of the cleaned page text"
    )

    url: Mapped[str] = mapped_column(
        String2048,
        nullable=False,
        comment="Submitted link (document://<name> for uploads)"
    )

    source: Mapped[SourceType] = mapped_column(
        _enum_column(SourceType, "source_type"),
        nullable=False,
        default=SourceType.WEB,
        index=True,
        comment="Platform classification"
    )

    tags: Mapped[list[str]] = mapped_column(
        JSONList,
        nullable=False,
        default=list,
        comment="Short topic tags from enrichment"
    )

    key_takeaways: Mapped[list[str]] = mapped_column(
        JSONList,
        nullable=False,
        default=list,
        comment="Key insights from enrichment"
    )

    thumbnail_url: Mapped[str | None] = mapped_column(
        String2048,
        nullable=True,
        comment="Preview image URL, if one was found"
    )

    # ================================
    # Status & User Flags
    # ================================

    processing_status: Mapped[ProcessingStatus] = mapped_column(
        _enum_column(ProcessingStatus, "processing_status"),
        nullable=False,
        default=ProcessingStatus.PENDING,
        index=True,
        comment="Enrichment lifecycle state"
    )
    # The dashboard polls/subscribes to this field for progress

    is_favorite: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="User-toggled favorite flag"
    )

    # ================================
    # Relationships
    # ================================

    user: Mapped["User"] = relationship(
        "User",
        back_populates="content_items"
    )

    collection_links: Mapped[list["CollectionItem"]] = relationship(
        "CollectionItem",
        back_populates="content_item",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    # Delete content → its collection memberships go with it

    __table_args__ = (
        # Library listing: a user's items newest first
        Index("ix_content_items_user_id_created_at", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"ContentItem(id={self.id}, source={self.source}, "
            f"status={self.processing_status}, title='{self.title[:40]}')"
        )


# ================================
# Collection Model
# ================================

DEFAULT_COLLECTION_COLOR = "#8b5cf6"


class Collection(BaseModel):
    """
    Collection model - a named group of content items.

    Table: collections
    ------------------
    Owned by one user. ``item_count`` is not stored; it is derived by
    counting collection_items rows when collections are listed.
    """

    __tablename__ = "collections"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning user"
    )

    name: Mapped[str] = mapped_column(
        String100,
        nullable=False,
        comment="Collection name"
    )

    description: Mapped[str | None] = mapped_column(
        String500,
        nullable=True,
        comment="Optional description"
    )

    color: Mapped[str] = mapped_column(
        String50,
        nullable=False,
        default=DEFAULT_COLLECTION_COLOR,
        comment="Display color tag"
    )

    user: Mapped["User"] = relationship(
        "User",
        back_populates="collections"
    )

    items: Mapped[list["CollectionItem"]] = relationship(
        "CollectionItem",
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    # Delete collection → delete its join rows (content items survive)

    def __repr__(self) -> str:
        return f"Collection(id={self.id}, name='{self.name}')"


# ================================
# CollectionItem Model (Association Object)
# ================================

class CollectionItem(BaseModel):
    """
    Junction row placing one content item in one collection.

    Table: collection_items
    -----------------------
    No ordering semantics. A content item appears in a collection at
    most once (unique pair).
    """

    __tablename__ = "collection_items"

    collection_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("collections.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to collections table"
    )

    content_item_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("content_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Foreign key to content_items table"
    )

    collection: Mapped["Collection"] = relationship(
        "Collection",
        back_populates="items"
    )

    content_item: Mapped["ContentItem"] = relationship(
        "ContentItem",
        back_populates="collection_links"
    )

    __table_args__ = (
        UniqueConstraint(
            'collection_id',
            'content_item_id',
            name='uq_collection_content_item'
        ),
    )

    def __repr__(self) -> str:
        return (
            f"CollectionItem(collection_id={self.collection_id}, "
            f"content_item_id={self.content_item_id})"
        )
