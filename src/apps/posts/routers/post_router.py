"""Post router."""

import asyncio
import logging
from enum import Enum
from typing import AsyncIterator, Optional

from fastapi import Depends, Query, status
from fastapi.responses import StreamingResponse

from src.core.bases.base_router import BaseRouter
from src.core.database import Database, get_database
from src.core.events import EventBus, Subscription, get_event_bus
from src.apps.posts.repositories.post_repository import PostRepository
from src.apps.posts.schemas.post import PostCreate, PostTopic, PostUpdate
from src.apps.posts.services.post_service import PostService
from src.apps.users.routers.dependencies import get_current_principal, get_identity_resolver
from src.apps.users.schemas.user import Principal
from src.apps.users.services.identity_service import IdentityResolver

logger = logging.getLogger(__name__)

_SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


class SubscriptionKind(str, Enum):
    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"


SUBSCRIPTION_TOPICS = {
    SubscriptionKind.ADDED: PostTopic.POST_ADDED,
    SubscriptionKind.UPDATED: PostTopic.POST_UPDATED,
    SubscriptionKind.DELETED: PostTopic.POST_DELETED,
}


def get_post_repository(database: Database = Depends(get_database)) -> PostRepository:
    """Get post repository instance."""
    return PostRepository(database.get_session)  # type:ignore


def get_post_service(
    repository: PostRepository = Depends(get_post_repository),
    identity: IdentityResolver = Depends(get_identity_resolver),
    bus: EventBus = Depends(get_event_bus),
) -> PostService:
    """Get post service instance."""
    return PostService(repository, identity, bus)


def _sse_line(event: str, data: str) -> str:
    return f"event: {event}\ndata: {data}\n\n"


async def stream_events(
    service: PostService, subscription: Subscription
) -> AsyncIterator[str]:
    """Relay a subscription as server-sent events until the client goes away."""
    try:
        async for post in subscription:
            yield _sse_line(subscription.topic, post.model_dump_json())
    except asyncio.CancelledError:
        logger.info("Client disconnected from %s stream", subscription.topic)
        raise
    finally:
        service.unsubscribe(subscription)


class PostRouter(BaseRouter):
    """Post router class."""

    def __init__(self):
        super().__init__(prefix="/posts", tags=["Posts"])

    def _register_routes(self) -> None:
        self._register_queries()
        self._register_subscriptions()
        self._register_mutations()

    def _register_queries(self) -> None:
        @self.router.get("/", summary="List posts, newest first")
        async def list_posts(
            page: Optional[int] = Query(None, description="1-based page number"),
            service: PostService = Depends(get_post_service),
        ):
            return await self._respond(service.get_list(page))

        @self.router.get("/mine", summary="Posts of the authenticated user")
        async def list_my_posts(
            principal: Principal = Depends(get_current_principal),
            service: PostService = Depends(get_post_service),
        ):
            return await self._respond(service.list_by_user(principal))

        @self.router.get("/count", summary="Approximate number of posts")
        async def count_posts(service: PostService = Depends(get_post_service)):
            return await self._respond(service.count())

        @self.router.get("/search", summary="Free-text search")
        async def search_posts(
            query: str = Query("", description='Terms, "phrases" and -exclusions'),
            service: PostService = Depends(get_post_service),
        ):
            return await self._respond(service.search(query))

        @self.router.get(
            "/{post_id}",
            summary="Get post by ID",
            responses={404: {"description": "Post not found"}},
        )
        async def get_post(post_id: int, service: PostService = Depends(get_post_service)):
            return await self._respond(service.get_by_id(post_id))

    def _register_subscriptions(self) -> None:
        @self.router.get(
            "/subscriptions/{kind}",
            summary="Stream post changes as server-sent events",
        )
        async def subscribe(
            kind: SubscriptionKind, service: PostService = Depends(get_post_service)
        ):
            # Subscribe before the response starts so no event is missed.
            subscription = service.subscribe(SUBSCRIPTION_TOPICS[kind])
            return StreamingResponse(
                stream_events(service, subscription),
                media_type="text/event-stream",
                headers=_SSE_HEADERS,
            )

    def _register_mutations(self) -> None:
        @self.router.post(
            "/",
            status_code=status.HTTP_201_CREATED,
            summary="Create post",
            responses={
                201: {"description": "Post created"},
                401: {"description": "Authentication required"},
                422: {"description": "Validation error"},
            },
        )
        async def create_post(
            post_in: PostCreate,
            principal: Principal = Depends(get_current_principal),
            service: PostService = Depends(get_post_service),
        ):
            return await self._respond(
                service.create(post_in, principal), status_code=status.HTTP_201_CREATED
            )

        @self.router.put(
            "/{post_id}",
            summary="Update post",
            responses={
                401: {"description": "Authentication required"},
                403: {"description": "Not the owner"},
                404: {"description": "Post not found"},
                422: {"description": "Validation error"},
            },
        )
        async def update_post(
            post_id: int,
            post_in: PostUpdate,
            principal: Principal = Depends(get_current_principal),
            service: PostService = Depends(get_post_service),
        ):
            return await self._respond(service.update(post_id, post_in, principal))

        @self.router.delete(
            "/{post_id}",
            summary="Delete post",
            responses={
                401: {"description": "Authentication required"},
                403: {"description": "Not the owner"},
                404: {"description": "Post not found"},
            },
        )
        async def delete_post(
            post_id: int,
            principal: Principal = Depends(get_current_principal),
            service: PostService = Depends(get_post_service),
        ):
            return await self._respond(service.delete(post_id, principal))


# Router instance
router = PostRouter().get_router()
