"""Shared fixtures: a fresh SQLite file database per test, services, API client.

Environment is set before any ``src`` import so Settings picks it up.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-long-enough-for-hs256-signing")
os.environ.setdefault("ASYNC_DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("TIME_ZONE", "UTC")

import pytest
from httpx import ASGITransport, AsyncClient

from src.core.database import Database, get_database
from src.core.events import EventBus, get_event_bus
from src.apps.posts.repositories.post_repository import PostRepository
from src.apps.posts.services.post_service import PostService
from src.apps.users.repositories.user_repository import UserRepository
from src.apps.users.schemas.user import Principal
from src.apps.users.services.identity_service import IdentityResolver, issue_token
from src.main import app

ALICE_EMAIL = "alice@example.com"
BOB_EMAIL = "bob@example.com"


def auth_headers(email: str) -> dict:
    return {"Authorization": f"Bearer {issue_token(email)}"}


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await db.create_tables()
    yield db
    await db.disconnect()


@pytest.fixture
def bus():
    bus = EventBus()
    yield bus
    bus.close()


@pytest.fixture
def user_repository(database):
    return UserRepository(database.get_session)


@pytest.fixture
def post_repository(database):
    return PostRepository(database.get_session)


@pytest.fixture
def identity(user_repository):
    return IdentityResolver(user_repository)


@pytest.fixture
def post_service(post_repository, identity, bus):
    return PostService(post_repository, identity, bus)


@pytest.fixture
async def alice(user_repository):
    return await user_repository.create({"email": ALICE_EMAIL, "username": "alice"})


@pytest.fixture
async def bob(user_repository):
    return await user_repository.create({"email": BOB_EMAIL, "username": "bob"})


@pytest.fixture
def alice_principal():
    return Principal(email=ALICE_EMAIL)


@pytest.fixture
def bob_principal():
    return Principal(email=BOB_EMAIL)


@pytest.fixture
async def client(database, bus):
    """API client with the database and event bus dependencies overridden."""
    app.dependency_overrides[get_database] = lambda: database
    app.dependency_overrides[get_event_bus] = lambda: bus

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
