"""
Pydantic schemas for the thumbnail extraction endpoint.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ThumbnailRequest(BaseModel):
    """Request schema for extracting a preview image."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., min_length=1, max_length=2048)
    content_type: Optional[str] = Field(
        None,
        alias="contentType",
        description="Optional hint such as 'youtube' or 'article'"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("URL cannot be empty")
        return v


class ThumbnailResponse(BaseModel):
    """Extraction outcome; ``thumbnail_url`` is set when ``success`` is true."""

    success: bool
    thumbnail_url: Optional[str] = None
    error: Optional[str] = None
