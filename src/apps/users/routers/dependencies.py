"""Authentication dependencies shared by the app routers."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.database import Database, get_database
from src.apps.users.repositories.user_repository import UserRepository
from src.apps.users.schemas.user import Principal
from src.apps.users.services.identity_service import IdentityResolver

bearer_scheme = HTTPBearer(auto_error=False)


def get_user_repository(database: Database = Depends(get_database)) -> UserRepository:
    """Get user repository instance."""
    return UserRepository(database.get_session)  # type:ignore


def get_identity_resolver(
    repository: UserRepository = Depends(get_user_repository),
) -> IdentityResolver:
    return IdentityResolver(repository)


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    identity: IdentityResolver = Depends(get_identity_resolver),
) -> Principal:
    """Resolve the bearer token; raises ``UnauthenticatedException`` (401)."""
    return identity.resolve(credentials.credentials if credentials else None)
