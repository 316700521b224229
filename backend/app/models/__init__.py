"""
Database Models

Import models from this module to ensure they're registered with SQLAlchemy:

    from app.models import User, ContentItem, Collection, CollectionItem

This ensures that:
1. Alembic can detect all models for migrations
2. Relationships resolve correctly
"""

from app.models.content import (
    DEFAULT_COLLECTION_COLOR,
    PLACEHOLDER_TITLE,
    Collection,
    CollectionItem,
    ContentItem,
    ProcessingStatus,
    SourceType,
)
from app.models.user import User

__all__ = [
    # User models
    "User",
    # Content models
    "ContentItem",
    "Collection",
    "CollectionItem",
    # Enums
    "SourceType",
    "ProcessingStatus",
    # Constants
    "PLACEHOLDER_TITLE",
    "DEFAULT_COLLECTION_COLOR",
]
