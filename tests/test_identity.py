"""Identity resolution and the ownership guard."""

import jwt
import pytest

from src.core import exceptions
from src.core.config import settings
from src.core.permissions import is_owner
from src.apps.users.schemas.user import Principal
from src.apps.users.services.identity_service import issue_token

from tests.conftest import ALICE_EMAIL


class TestResolve:

    def test_valid_token_yields_principal(self, identity):
        principal = identity.resolve(issue_token(ALICE_EMAIL))

        assert principal.email == ALICE_EMAIL
        assert principal.subject == ALICE_EMAIL

    def test_bearer_prefix_is_accepted(self, identity):
        principal = identity.resolve(f"Bearer {issue_token(ALICE_EMAIL)}")

        assert principal.email == ALICE_EMAIL

    @pytest.mark.parametrize("credentials", [None, "", "   "])
    def test_missing_credentials(self, identity, credentials):
        with pytest.raises(exceptions.UnauthenticatedException):
            identity.resolve(credentials)

    def test_expired_token(self, identity):
        token = issue_token(ALICE_EMAIL, expires_minutes=-5)

        with pytest.raises(exceptions.UnauthenticatedException, match="expired"):
            identity.resolve(token)

    def test_token_signed_with_another_key(self, identity):
        token = issue_token(ALICE_EMAIL, secret_key="another-secret-key-of-sufficient-length")

        with pytest.raises(exceptions.UnauthenticatedException, match="Invalid"):
            identity.resolve(token)

    def test_token_without_email(self, identity):
        token = jwt.encode({"sub": "x"}, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

        with pytest.raises(exceptions.UnauthenticatedException):
            identity.resolve(token)


class TestLookup:

    async def test_lookup_internal_id(self, identity, alice):
        assert await identity.lookup_internal_id(Principal(email=ALICE_EMAIL)) == alice.id

    async def test_unknown_principal_is_not_found(self, identity):
        with pytest.raises(exceptions.NotFoundException):
            await identity.lookup_internal_id(Principal(email="nobody@example.com"))


class TestIsOwner:

    @pytest.mark.parametrize(
        "principal_id, owner_id",
        [(1, 1), (1, "1"), ("7", 7), (" 7", "7 ")],
    )
    def test_same_id_in_any_representation(self, principal_id, owner_id):
        assert is_owner(principal_id, owner_id) is True

    @pytest.mark.parametrize(
        "principal_id, owner_id",
        [(1, 2), ("1", "11"), (None, 1), (1, None), (None, None)],
    )
    def test_different_or_missing_ids(self, principal_id, owner_id):
        assert is_owner(principal_id, owner_id) is False
