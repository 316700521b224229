"""
Pydantic schemas for Collection API endpoints.
"""

import re
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.content import DEFAULT_COLLECTION_COLOR

_HEX_COLOR_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _check_color(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if not _HEX_COLOR_RE.match(v):
        raise ValueError("Color must be a hex value like #8b5cf6")
    return v.lower()


# ========================================
# Request Schemas
# ========================================


class CollectionCreate(BaseModel):
    """Request schema for creating a collection."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Collection name",
        examples=["Machine Learning"]
    )

    description: Optional[str] = Field(
        None,
        max_length=500,
        description="Optional description"
    )

    color: str = Field(
        DEFAULT_COLLECTION_COLOR,
        description="Display color (hex)",
        examples=["#8b5cf6"]
    )

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Collection name cannot be empty")
        return v

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: str) -> str:
        return _check_color(v)


class CollectionUpdate(BaseModel):
    """Request schema for updating a collection; omitted fields are unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    color: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Collection name cannot be empty")
        return v

    @field_validator('color')
    @classmethod
    def validate_color(cls, v: Optional[str]) -> Optional[str]:
        return _check_color(v)


class CollectionItemsAdd(BaseModel):
    """Content items to place in a collection."""

    content_ids: List[uuid.UUID] = Field(
        ...,
        min_length=1,
        description="Content item IDs; items already in the collection are skipped"
    )


# ========================================
# Response Schemas
# ========================================


class CollectionResponse(BaseModel):
    """A collection with its derived item count."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    color: str
    item_count: int = Field(0, description="Number of content items in the collection")
    created_at: datetime
    updated_at: datetime


class CollectionItemsAddResponse(BaseModel):
    """Result of adding items to a collection."""

    added: int = Field(..., description="Items newly placed in the collection")
    skipped: int = Field(..., description="Items that were already in it")
    item_count: int = Field(..., description="Collection size afterwards")
