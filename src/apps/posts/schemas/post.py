"""Post schemas."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel


class PostTopic(str, Enum):
    """Event bus topics, one per lifecycle transition."""
    POST_ADDED = "PostAdded"
    POST_UPDATED = "PostUpdated"
    POST_DELETED = "PostDeleted"


class OwnerProjection(str, Enum):
    """How much of the owner to join onto a post read."""
    FULL = "id username"
    USERNAME = "username"


class PostCreate(BaseModel):
    """Schema for creating a post."""
    content: str


class PostUpdate(BaseModel):
    """Schema for updating a post."""
    content: str


class PostOwner(BaseModel):
    id: Optional[int] = None
    username: Optional[str] = None


class PostRead(BaseModel):
    """A post with its owner populated."""
    id: int
    content: str
    owner: PostOwner
    created_at: datetime
    updated_at: datetime
