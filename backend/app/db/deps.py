"""
Database Dependencies for FastAPI Routes

Routes declare the session they need and FastAPI provides it:

    @router.get("/content")
    async def list_content(db: DBSession):
        result = await db.execute(select(ContentItem))
        return result.scalars().all()

Tests swap the real session for an in-memory one with
``app.dependency_overrides[get_db] = get_db_override(session)``.

Learning Resources:
- FastAPI Dependencies: https://fastapi.tiangolo.com/tutorial/dependencies/
"""

from collections.abc import AsyncGenerator, Callable
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_session


# ================================
# Database Session Dependency
# ================================

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session.

    Each request gets its own session. Commit explicitly with
    ``await db.commit()``; errors roll back automatically.

    Yields:
        AsyncSession: Database session for the current request
    """
    async for session in get_session():
        yield session


# Shorter route signatures: ``async def route(db: DBSession)``
DBSession = Annotated[AsyncSession, Depends(get_db)]


# ================================
# Testing Helpers
# ================================

def get_db_override(session: AsyncSession) -> Callable[[], AsyncGenerator[AsyncSession, None]]:
    """
    Create a dependency override that always yields ``session``.

    Usage in Tests:
    ---------------
    app.dependency_overrides[get_db] = get_db_override(test_session)
    """
    async def _override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    return _override


__all__ = [
    "get_db",
    "DBSession",
    "get_db_override",
]
