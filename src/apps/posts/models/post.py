"""Post model."""

from sqlalchemy import Index, Text
from sqlmodel import Field
from src.core.database import BaseModel


class Post(BaseModel, table=True):
    """Post model class.

    AUTOINCREMENT keeps SQLite from handing out the id of a deleted post again.
    """

    __tablename__ = "posts"  # type: ignore
    __table_args__ = (
        Index("ix_posts_created_at_id", "created_at", "id"),
        {"sqlite_autoincrement": True},
    )
    content: str = Field(sa_type=Text, nullable=False)  # type: ignore
    owner_id: int = Field(foreign_key="users.id", index=True, nullable=False)
