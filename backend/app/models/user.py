"""
User Models

Every content item and collection is exclusively owned by one User;
nothing is shared between accounts.

Database Tables:
----------------
- users: Stores user account data

Learning Resources:
-------------------
- SQLAlchemy Relationships: https://docs.sqlalchemy.org/en/20/orm/basic_relationships.html
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import BaseModel, String100, String255

# Type checking imports only, avoids circular imports at runtime
if TYPE_CHECKING:
    from app.models.content import Collection, ContentItem


class User(BaseModel):
    """
    User account model.

    Table: users
    ------------
    Inherits from BaseModel, which automatically provides:
    - id (UUID primary key)
    - created_at (datetime, UTC, set on creation)
    - updated_at (datetime, UTC, updates automatically)

    Relationships:
    --------------
    - content_items (1-to-many): Everything the user has saved
    - collections (1-to-many): The user's named groupings
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String255,
        unique=True,
        index=True,
        nullable=False,
        comment="User's email address, used as the login identifier"
    )
    # Queried on every authenticated request (JWT "sub" claim)

    name: Mapped[str] = mapped_column(
        String100,
        nullable=False,
        comment="User's display name"
    )

    hashed_password: Mapped[str | None] = mapped_column(
        String255,
        nullable=True,
        default=None,
        comment="bcrypt hash of the user's password"
    )
    # Never store plaintext; see app.core.security.get_password_hash

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        comment="Whether the account is enabled"
    )

    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        comment="Last successful login (UTC)"
    )

    # ================================
    # Relationships
    # ================================

    content_items: Mapped[list["ContentItem"]] = relationship(
        "ContentItem",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    # A user's library can be large; query it explicitly

    collections: Mapped[list["Collection"]] = relationship(
        "Collection",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"User(id={self.id}, email='{self.email}')"
