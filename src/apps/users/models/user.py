"""User model."""

from typing import Optional

from sqlmodel import Field
from src.core.database import BaseModel


class User(BaseModel, table=True):
    """User model class."""

    __tablename__ = "users"  # type: ignore
    email: str = Field(unique=True, index=True)
    username: str = Field(unique=True, index=True)
    name: Optional[str] = Field(default=None)
    about: Optional[str] = Field(default=None)
