"""
Pydantic schemas for Content API endpoints.

These schemas define the request/response structures for saving links,
browsing the library and triggering enrichment.
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.content import ProcessingStatus, SourceType


# ========================================
# Request Schemas
# ========================================


class ContentCreate(BaseModel):
    """Request schema for saving a link or an uploaded document."""

    url: str = Field(
        ...,
        description="Link to save, or document://<filename> for uploads",
        min_length=1,
        max_length=2048,
        examples=["https://youtu.be/abc123", "document://report.pdf"]
    )

    notes: Optional[str] = Field(
        None,
        description="Optional notes, stored as the item's text until enrichment",
        max_length=10000
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate and clean the URL."""
        v = v.strip()
        if not v:
            raise ValueError("URL cannot be empty")
        return v


class ProcessContentRequest(BaseModel):
    """
    Synchronous enrichment trigger.

    Field names follow the dashboard's camelCase payload:
        {"url": "...", "userId": "...", "contentId": "..."}
    """

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., min_length=1, max_length=2048)
    user_id: uuid.UUID = Field(..., alias="userId")
    content_id: uuid.UUID = Field(..., alias="contentId")

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("URL cannot be empty")
        return v


# ========================================
# Response Schemas
# ========================================


class ContentResponse(BaseModel):
    """A saved content item."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    summary: Optional[str] = None
    content_text: Optional[str] = None
    url: str
    source: SourceType
    tags: List[str] = Field(default_factory=list)
    key_takeaways: List[str] = Field(default_factory=list)
    processing_status: ProcessingStatus
    thumbnail_url: Optional[str] = None
    is_favorite: bool
    created_at: datetime
    updated_at: datetime

    @field_validator('tags', 'key_takeaways', mode='before')
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v if v is not None else []


class ContentListResponse(BaseModel):
    """Paginated list of content items, newest first."""

    items: List[ContentResponse]
    total: int = Field(..., description="Items matching the filters")
    page: int
    page_size: int
    has_more: bool


class AnalysisResultResponse(BaseModel):
    """Structured enrichment returned by a successful pipeline run."""

    title: str
    summary: str
    tags: List[str]
    key_takeaways: List[str]
    source_type: SourceType


class ProcessContentResponse(BaseModel):
    """
    Outcome of the synchronous enrichment trigger.

    ``result`` is present on success, ``error`` on failure.
    """

    success: bool
    result: Optional[AnalysisResultResponse] = None
    error: Optional[str] = None
