"""User repository."""

from typing import List, Optional

from sqlmodel import col

from src.core.bases.base_repository import BaseRepository
from src.apps.users.models.user import User


class UserRepository(BaseRepository[User]):
    """User repository class."""

    model = User

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.get_one(email=email)

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self.get_one(username=username)

    async def list_users(self) -> List[User]:
        return await self.get_many(limit=None, order_by=[col(User.username)])
