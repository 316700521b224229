"""
Authentication schemas (Pydantic models for request/response).

Accounts exist only to scope content and collections to their owner.

References:
-----------
- Pydantic: https://docs.pydantic.dev/latest/
- FastAPI Security: https://fastapi.tiangolo.com/tutorial/security/
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


# ================================
# Token Schemas
# ================================

class Token(BaseModel):
    """
    JWT token response.

    Returned after successful login. Clients send it back as:
        Authorization: Bearer <access_token>
    """
    access_token: str = Field(
        ...,
        description="JWT access token",
        examples=["eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."]
    )
    token_type: str = Field(
        default="bearer",
        description="Token type (always 'bearer' for JWT)"
    )


# ================================
# User Registration
# ================================

class UserRegister(BaseModel):
    """
    User registration request.

    Example request:
        POST /api/v1/auth/register
        {
            "email": "alice@example.com",
            "name": "Alice Johnson",
            "password": "SecurePassword123!"
        }
    """
    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["alice@example.com"]
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="User's display name",
        examples=["Alice Johnson"]
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=100,
        description="User's password (minimum 8 characters)",
        examples=["SecurePassword123!"]
    )


# ================================
# User Response Schemas
# ================================

class UserResponse(BaseModel):
    """
    User information response.

    Excludes the password hash.
    """
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID = Field(..., description="User's unique ID")
    email: str = Field(..., description="User's email address")
    name: str = Field(..., description="User's display name")
    is_active: bool = Field(..., description="Whether user account is active")
    last_login: Optional[datetime] = Field(None, description="Last successful login")
    created_at: datetime = Field(..., description="Account creation time")


class UserWithToken(BaseModel):
    """User details plus a fresh access token (returned by register)."""
    user: UserResponse = Field(..., description="User information")
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
