"""Post service."""

import logging
from typing import Any, Dict, Optional

from src.core import exceptions
from src.core.bases.base_service import BaseService
from src.core.config import settings
from src.core.events import EventBus, Subscription
from src.core.permissions import is_owner
from src.apps.posts.models.post import Post
from src.apps.posts.repositories.post_repository import PostRepository
from src.apps.posts.schemas.post import (
    OwnerProjection,
    PostCreate,
    PostRead,
    PostTopic,
    PostUpdate,
)
from src.apps.users.schemas.user import Principal
from src.apps.users.services.identity_service import IdentityResolver

logger = logging.getLogger(__name__)


class PostService(BaseService[Post]):
    """Post lifecycle: ownership-checked mutations, paging, search, notifications.

    Nothing is cached between calls; every operation reads from the repository.
    Events are published from the repository's commit callback, so they go
    out only for confirmed writes and in commit order.
    """

    resource_name = "Post"

    def __init__(
        self,
        repository: PostRepository,
        identity: IdentityResolver,
        bus: EventBus,
        per_page: Optional[int] = None,
    ):
        super().__init__(repository)
        self.repository: PostRepository = repository
        self.identity = identity
        self.bus = bus
        self.per_page = per_page or settings.POSTS_PER_PAGE

    @staticmethod
    def _require_principal(principal: Optional[Principal]) -> Principal:
        if principal is None:
            raise exceptions.UnauthenticatedException()
        return principal

    @staticmethod
    def _validate_content(data: Dict[str, Any]) -> None:
        content = data.get("content")
        if content is None or not str(content).strip():
            raise exceptions.ValidationException("Content is required", field="content")

    async def _validate_create(self, create_data: Dict[str, Any]) -> None:
        self._validate_content(create_data)

    async def _validate_update(self, item_id: Any, update_data: Dict[str, Any]) -> None:
        self._validate_content(update_data)

    async def _get_owned(self, post_id: int, owner_id: int) -> PostRead:
        existing = await self.repository.find_by_id(post_id)
        if existing is None:
            raise self._not_found(post_id)
        if not is_owner(owner_id, existing.owner.id):
            logger.warning(
                "Owner check failed for post %s", post_id,
                extra={"post_id": post_id, "owner_id": owner_id},
            )
            raise exceptions.UnauthorizedException()
        return existing

    def _publish(self, topic: PostTopic, post: PostRead) -> None:
        delivered = self.bus.publish(topic, post)
        logger.info(
            "%s post %s", topic.value, post.id,
            extra={"post_id": post.id, "topic": topic.value, "listeners": delivered},
        )

    # ----------------- MUTATIONS ----------------- #
    async def create(
        self, post_in: PostCreate, principal: Optional[Principal]
    ) -> Dict[str, Any]:
        principal = self._require_principal(principal)
        create_data = post_in.model_dump()
        await self._validate_create(create_data)

        owner_id = await self.identity.lookup_internal_id(principal)
        post = await self.repository.insert(
            owner_id=owner_id,
            content=create_data["content"],
            on_commit=lambda created: self._publish(PostTopic.POST_ADDED, created),
        )
        return self._result(post, "Post created successfully")

    async def update(
        self, post_id: int, post_in: PostUpdate, principal: Optional[Principal]
    ) -> Dict[str, Any]:
        principal = self._require_principal(principal)
        update_data = post_in.model_dump(exclude_unset=True)
        await self._validate_update(post_id, update_data)

        owner_id = await self.identity.lookup_internal_id(principal)
        await self._get_owned(post_id, owner_id)

        # Conditional on the owner too; None means the post went away meanwhile.
        post = await self.repository.update_by_id_and_owner(
            post_id,
            owner_id,
            update_data,
            on_commit=lambda updated: self._publish(PostTopic.POST_UPDATED, updated),
        )
        if post is None:
            raise self._not_found(post_id)
        return self._result(post, "Post updated successfully")

    async def delete(self, post_id: int, principal: Optional[Principal]) -> Dict[str, Any]:
        principal = self._require_principal(principal)
        owner_id = await self.identity.lookup_internal_id(principal)
        post = await self._get_owned(post_id, owner_id)

        deleted = await self.repository.delete_by_id_and_owner(
            post_id,
            owner_id,
            on_commit=lambda: self._publish(PostTopic.POST_DELETED, post),
        )
        if not deleted:
            raise self._not_found(post_id)
        return self._result(post, "Post deleted successfully")

    # ----------------- QUERIES ----------------- #
    async def get_list(self, page: Optional[int] = None) -> Dict[str, Any]:
        if page is None or page < 1:
            page = 1
        posts = await self.repository.find_all(
            skip=(page - 1) * self.per_page, limit=self.per_page
        )
        return self._result(
            posts, "Posts retrieved successfully", page=page, per_page=self.per_page
        )

    async def list_by_user(self, principal: Optional[Principal]) -> Dict[str, Any]:
        principal = self._require_principal(principal)
        owner_id = await self.identity.lookup_internal_id(principal)
        posts = await self.repository.find_by_owner(owner_id)
        return self._result(posts, "Posts retrieved successfully")

    async def get_by_id(self, post_id: int) -> Dict[str, Any]:
        post = await self.repository.find_by_id(post_id)
        if post is None:
            raise self._not_found(post_id)
        return self._result(post, "Post retrieved successfully")

    async def count(self) -> Dict[str, Any]:
        total = await self.repository.approximate_count()
        return self._result(total, "Count retrieved successfully")

    async def search(self, query: Optional[str]) -> Dict[str, Any]:
        posts = await self.repository.text_search(
            query, with_owner_projection=OwnerProjection.USERNAME
        )
        return self._result(posts, "Search completed successfully")

    # ----------------- SUBSCRIPTIONS ----------------- #
    def subscribe(self, topic: PostTopic) -> Subscription:
        return self.bus.subscribe(topic)

    def unsubscribe(self, subscription: Subscription) -> None:
        self.bus.unsubscribe(subscription)
