"""User schemas."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class Principal(BaseModel):
    """Authenticated identity taken from a verified access token."""
    email: str
    subject: Optional[str] = None


class UserCreate(BaseModel):
    """Schema for registering the authenticated user."""
    username: Optional[str] = None
    name: Optional[str] = None
    about: Optional[str] = None


class UserUpdate(BaseModel):
    """Profile fields the user may change; email stays bound to the token."""
    username: Optional[str] = None
    name: Optional[str] = None
    about: Optional[str] = None


class UserCreateResponse(BaseModel):
    username: str
    email: str


class UserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: Optional[str] = None
    email: str
    about: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PublicUserRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: Optional[str] = None
    about: Optional[str] = None
