"""
Pydantic schemas for request/response validation.

Import all schemas here for easy access.
"""

from app.schemas.auth import (
    Token,
    UserRegister,
    UserResponse,
    UserWithToken,
)
from app.schemas.collection import (
    CollectionCreate,
    CollectionItemsAdd,
    CollectionItemsAddResponse,
    CollectionResponse,
    CollectionUpdate,
)
from app.schemas.content import (
    AnalysisResultResponse,
    ContentCreate,
    ContentListResponse,
    ContentResponse,
    ProcessContentRequest,
    ProcessContentResponse,
)
from app.schemas.insights import InsightsRequest, InsightsResponse
from app.schemas.thumbnail import ThumbnailRequest, ThumbnailResponse

__all__ = [
    # Authentication
    "Token",
    "UserRegister",
    "UserResponse",
    "UserWithToken",
    # Content
    "ContentCreate",
    "ContentResponse",
    "ContentListResponse",
    "ProcessContentRequest",
    "ProcessContentResponse",
    "AnalysisResultResponse",
    # Collections
    "CollectionCreate",
    "CollectionUpdate",
    "CollectionResponse",
    "CollectionItemsAdd",
    "CollectionItemsAddResponse",
    # Insights & thumbnails
    "InsightsRequest",
    "InsightsResponse",
    "ThumbnailRequest",
    "ThumbnailResponse",
]
