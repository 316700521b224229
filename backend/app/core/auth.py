"""
Authentication dependencies for FastAPI.

This module provides:
- OAuth2 password bearer scheme
- Dependency injection for protected routes

Every content and collection query is scoped by the user returned from
``get_current_active_user``.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token, verify_password
from app.db.deps import get_db
from app.models.user import User

# ================================
# OAuth2 Configuration
# ================================

# Extracts "Authorization: Bearer <token>"; tokenUrl points Swagger UI at login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/auth/login")


# ================================
# Authentication Functions
# ================================

async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    """
    Authenticate a user by email and password.

    Returns None for an unknown email, a password-less account, or a wrong
    password, so callers cannot tell which one failed.
    """
    result = await db.execute(
        select(User).where(User.email == email)
    )
    user = result.scalar_one_or_none()

    if not user or not user.hashed_password:
        return None

    if not verify_password(password, user.hashed_password):
        return None

    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get the current authenticated user from the JWT token.

    Raises:
        HTTPException 401: If the token is invalid, expired, or the user is gone
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    email: str | None = payload.get("sub")
    if email is None:
        raise credentials_exception

    result = await db.execute(
        select(User).where(User.email == email)
    )
    user = result.scalar_one_or_none()

    if user is None:
        raise credentials_exception

    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get the current user and verify the account is not disabled.

    Raises:
        HTTPException 400: If the user account is disabled
    """
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )
    return current_user
