"""
Pydantic schemas for the insights endpoint.
"""

import uuid
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class InsightsRequest(BaseModel):
    """
    Insights trigger.

    Example request:
        POST /api/v1/insights
        {"userId": "…", "contentIds": ["…"], "query": "What should I read next?"}
    """

    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[uuid.UUID] = Field(
        None,
        alias="userId",
        description="Must match the authenticated user when given"
    )
    content_ids: List[uuid.UUID] = Field(
        default_factory=list,
        alias="contentIds",
        description="Restrict the analysis to these items (default: most recent)"
    )
    query: Optional[str] = Field(
        None,
        max_length=2000,
        description="A specific question to answer from the saved content"
    )


class InsightsResponse(BaseModel):
    """Insights over the user's content. ``error`` is only set on failure."""

    insights: str
    patterns: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    topics: List[str] = Field(default_factory=list)
    error: Optional[str] = None
