"""User service."""

import logging
from typing import Any, Dict, Optional

from src.core import exceptions
from src.core.bases.base_service import BaseService
from src.apps.users.models.user import User
from src.apps.users.repositories.user_repository import UserRepository
from src.apps.users.schemas.user import (
    Principal,
    PublicUserRead,
    UserCreate,
    UserCreateResponse,
    UserRead,
    UserUpdate,
)
from src.apps.users.services.identity_service import IdentityResolver

logger = logging.getLogger(__name__)


class UserService(BaseService[User]):
    """User service class."""

    resource_name = "User"

    def __init__(self, repository: UserRepository, identity: IdentityResolver):
        super().__init__(repository)
        self.repository: UserRepository = repository
        self.identity = identity

    async def _check_username(self, username: Optional[str], user_id: Optional[int] = None) -> str:
        username = (username or "").strip()
        if not username:
            raise exceptions.ValidationException("Username is required", field="username")
        holder = await self.repository.get_by_username(username)
        if holder is not None and holder.id != user_id:
            raise exceptions.ValidationException("Username is taken", field="username")
        return username

    async def _validate_create(self, create_data: Dict[str, Any]) -> None:
        create_data["username"] = await self._check_username(create_data.get("username"))

    async def _validate_update(self, item_id: Any, update_data: Dict[str, Any]) -> None:
        if "username" in update_data:
            update_data["username"] = await self._check_username(
                update_data["username"], user_id=item_id
            )

    async def register(
        self, principal: Optional[Principal], user_in: Optional[UserCreate] = None
    ) -> Dict[str, Any]:
        """Create the user record for the principal's email, once."""
        if principal is None:
            raise exceptions.UnauthenticatedException()

        existing = await self.repository.get_by_email(principal.email)
        if existing is not None:
            return self._result(
                UserCreateResponse(username=existing.username, email=existing.email),
                "User already exists",
            )

        create_data = user_in.model_dump(exclude_none=True) if user_in else {}
        create_data.setdefault("username", principal.email.split("@")[0])
        create_data["email"] = principal.email
        await self._validate_create(create_data)

        user = await self.repository.create(create_data)
        logger.info("Registered user %s", user.username)
        return self._result(
            UserCreateResponse(username=user.username, email=user.email),
            "User created successfully",
        )

    async def profile(self, principal: Optional[Principal]) -> Dict[str, Any]:
        if principal is None:
            raise exceptions.UnauthenticatedException()
        user = await self.identity.lookup_user(principal)
        return self._result(UserRead.model_validate(user), "Profile retrieved successfully")

    async def update_profile(
        self, principal: Optional[Principal], user_in: UserUpdate
    ) -> Dict[str, Any]:
        """Change username, name or about of the authenticated user."""
        if principal is None:
            raise exceptions.UnauthenticatedException()
        user = await self.identity.lookup_user(principal)

        update_data = user_in.model_dump(exclude_unset=True)
        await self._validate_update(user.id, update_data)

        updated = await self.repository.update(user.id, update_data)
        if updated is None:
            raise self._not_found()
        logger.info("Updated profile of user %s", updated.username)
        return self._result(UserRead.model_validate(updated), "Profile updated successfully")

    async def public_profile(self, username: str) -> Dict[str, Any]:
        user = await self.repository.get_by_username(username)
        if user is None:
            raise self._not_found()
        return self._result(
            PublicUserRead.model_validate(user), "Profile retrieved successfully"
        )

    async def list_users(self) -> Dict[str, Any]:
        users = await self.repository.list_users()
        return self._result(
            [PublicUserRead.model_validate(user) for user in users],
            "Users retrieved successfully",
        )
