"""Identity resolution: bearer token -> principal -> internal user id."""

import logging
from datetime import timedelta
from typing import Optional

import jwt

from src.core import exceptions
from src.core.config import settings
from src.apps.users.models.user import User
from src.apps.users.repositories.user_repository import UserRepository
from src.apps.users.schemas.user import Principal

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "


def issue_token(
    email: str,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Sign an access token for ``email``. Used by the CLI and tests."""
    now = settings.get_now()
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    payload = {
        "sub": email,
        "email": email,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(
        payload,
        secret_key or settings.SECRET_KEY,
        algorithm=algorithm or settings.JWT_ALGORITHM,
    )


class IdentityResolver:
    """Verifies access tokens and maps principals onto stored users."""

    def __init__(
        self,
        repository: UserRepository,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
    ):
        self.repository = repository
        self.secret_key = secret_key or settings.SECRET_KEY
        self.algorithm = algorithm or settings.JWT_ALGORITHM

    def resolve(self, credentials: Optional[str]) -> Principal:
        """Return the principal for ``credentials`` or raise ``UnauthenticatedException``."""
        if not credentials or not credentials.strip():
            raise exceptions.UnauthenticatedException()

        token = credentials.strip()
        if token.lower().startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX):].strip()

        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as e:
            raise exceptions.UnauthenticatedException("Token expired") from e
        except jwt.InvalidTokenError as e:
            logger.info("Rejected access token: %s", e)
            raise exceptions.UnauthenticatedException("Invalid token") from e

        email = claims.get("email")
        if not email:
            raise exceptions.UnauthenticatedException("Token carries no email")
        return Principal(email=email, subject=claims.get("sub"))

    async def lookup_user(self, principal: Principal) -> User:
        user = await self.repository.get_by_email(principal.email)
        if user is None:
            raise exceptions.NotFoundException("User not found")
        return user

    async def lookup_internal_id(self, principal: Principal) -> int:
        user = await self.lookup_user(principal)
        return user.id  # type: ignore[return-value]
