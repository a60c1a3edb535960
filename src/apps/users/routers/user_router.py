"""User router."""

from typing import Optional

from fastapi import Depends, status

from src.core.bases.base_router import BaseRouter
from src.apps.users.routers.dependencies import (
    get_current_principal,
    get_identity_resolver,
    get_user_repository,
)
from src.apps.users.repositories.user_repository import UserRepository
from src.apps.users.schemas.user import Principal, UserCreate, UserUpdate
from src.apps.users.services.identity_service import IdentityResolver
from src.apps.users.services.user_service import UserService


def get_user_service(
    repository: UserRepository = Depends(get_user_repository),
    identity: IdentityResolver = Depends(get_identity_resolver),
) -> UserService:
    """Get user service instance."""
    return UserService(repository, identity)


class UserRouter(BaseRouter):
    """User router class."""

    def __init__(self):
        super().__init__(prefix="/users", tags=["Users"])

    def _register_routes(self) -> None:
        @self.router.post(
            "/",
            status_code=status.HTTP_201_CREATED,
            summary="Register the authenticated user",
            responses={
                201: {"description": "User created"},
                401: {"description": "Authentication required"},
                422: {"description": "Validation error"},
            },
        )
        async def register_user(
            user_in: Optional[UserCreate] = None,
            principal: Principal = Depends(get_current_principal),
            service: UserService = Depends(get_user_service),
        ):
            return await self._respond(
                service.register(principal, user_in), status_code=status.HTTP_201_CREATED
            )

        @self.router.get("/me", summary="Profile of the authenticated user")
        async def profile(
            principal: Principal = Depends(get_current_principal),
            service: UserService = Depends(get_user_service),
        ):
            return await self._respond(service.profile(principal))

        @self.router.put(
            "/me",
            summary="Update the authenticated user's profile",
            responses={
                401: {"description": "Authentication required"},
                404: {"description": "User not registered"},
                422: {"description": "Validation error"},
            },
        )
        async def update_profile(
            user_in: UserUpdate,
            principal: Principal = Depends(get_current_principal),
            service: UserService = Depends(get_user_service),
        ):
            return await self._respond(service.update_profile(principal, user_in))

        @self.router.get("/", summary="List users")
        async def list_users(service: UserService = Depends(get_user_service)):
            return await self._respond(service.list_users())

        @self.router.get("/{username}", summary="Public profile")
        async def public_profile(
            username: str, service: UserService = Depends(get_user_service)
        ):
            return await self._respond(service.public_profile(username))


# Router instance
router = UserRouter().get_router()
