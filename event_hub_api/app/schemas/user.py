"""
Pydantic models for user data.

Defines schemas for registering users, logging in and reading user
information.  Password hashes never leave the service layer.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from .base import CamelModel


Role = Literal["user", "admin"]


class UserCreate(CamelModel):
    """Schema for registering a user."""

    email: str = Field(..., min_length=3, examples=["asha@example.com"])
    password: str = Field(..., min_length=6, examples=["strongpassword"])
    full_name: Optional[str] = Field(None, examples=["Asha Rao"])


class UserLogin(CamelModel):
    email: str
    password: str


class UserRead(CamelModel):
    """Schema for reading a user from the API."""

    id: int
    email: str
    full_name: Optional[str] = None
    role: Role = "user"
    disabled: bool = False
    created_at: datetime


class UserSummary(CamelModel):
    """Limited user fields joined into payment listings."""

    id: int
    full_name: Optional[str] = None
    email: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
