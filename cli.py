import asyncio
from typing import Optional

import typer
import uvicorn

from src.core.database import database
from src.apps.users.repositories.user_repository import UserRepository
from src.apps.users.schemas.user import Principal, UserCreate
from src.apps.users.services.identity_service import IdentityResolver, issue_token
from src.apps.users.services.user_service import UserService
from src.core.exceptions import ServiceException

app = typer.Typer(help="Management CLI for the post feed API.")


# ---------------------------
# Helpers
# ---------------------------
def get_user_service() -> UserService:
    repository = UserRepository(database.get_session)  # type: ignore
    return UserService(repository, IdentityResolver(repository))


async def _init_db() -> None:
    try:
        await database.create_tables()
    finally:
        await database.disconnect()


async def _create_user(email: str, username: Optional[str]) -> dict:
    await database.create_tables()
    try:
        return await get_user_service().register(
            Principal(email=email), UserCreate(username=username)
        )
    finally:
        await database.disconnect()


# ---------------------------
# Commands
# ---------------------------
@app.command()
def init_db():
    """Create the database tables."""
    asyncio.run(_init_db())
    print(f"✅ Tables created on {database.url}")


@app.command()
def create_user(
    email: str,
    username: Optional[str] = typer.Option(None, "--username", "-u", help="Defaults to the email local part"),
):
    """Create a user record for EMAIL."""
    try:
        result = asyncio.run(_create_user(email, username))
    except ServiceException as e:
        print(f"❌ {e.detail}")
        raise typer.Exit(1)
    user = result["data"]
    print(f"✅ {result['message']}: {user.username} <{user.email}>")


@app.command(name="issue-token")
def token(
    email: str,
    minutes: Optional[int] = typer.Option(None, "--minutes", "-m", help="Token lifetime"),
):
    """Print a signed access token for EMAIL (development only)."""
    print(issue_token(email, expires_minutes=minutes))


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
    reload: bool = typer.Option(False, help="Auto-reload on code changes"),
):
    """Run the API with uvicorn."""
    uvicorn.run("src.main:app", host=host, port=port, reload=reload, log_level="info")


# ---------------------------
# Entrypoint
# ---------------------------
if __name__ == "__main__":
    app()
