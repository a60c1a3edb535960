"""Post repository."""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import and_, delete, or_, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from src.core.bases.base_repository import BaseRepository
from src.core.config import settings
from src.apps.posts.models.post import Post
from src.apps.posts.schemas.post import OwnerProjection, PostOwner, PostRead
from src.apps.users.models.user import User

_QUERY_TOKEN = re.compile(r'(-?)"([^"]*)"|(\S+)')
_LIKE_ESCAPE = "\\"


@dataclass
class SearchQuery:
    """A parsed free-text query.

    A post matches when it contains any of ``terms``, every one of ``phrases``
    and none of ``excluded``. Matching is on whole words, case-insensitively:
    ``bye`` does not match "goodbye".
    """

    terms: List[str] = field(default_factory=list)
    phrases: List[str] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.terms and not self.phrases

    def matches(self, content: str) -> bool:
        def found(value: str) -> bool:
            return _word_pattern(value).search(content) is not None

        if self.terms and not any(found(term) for term in self.terms):
            return False
        if not all(found(phrase) for phrase in self.phrases):
            return False
        return not any(found(excluded) for excluded in self.excluded)


def parse_search_query(query: Optional[str]) -> SearchQuery:
    """Split ``query`` into terms, ``"quoted phrases"`` and ``-negated`` words."""
    parsed = SearchQuery()
    for negated, phrase, word in _QUERY_TOKEN.findall(query or ""):
        if word:
            if word.startswith("-") and len(word) > 1:
                parsed.excluded.append(word[1:])
            elif word != "-":
                parsed.terms.append(word)
        elif phrase.strip():
            target = parsed.excluded if negated else parsed.phrases
            target.append(" ".join(phrase.split()))
    return parsed


def _word_pattern(value: str) -> "re.Pattern[str]":
    words = r"\s+".join(re.escape(word) for word in value.split())
    return re.compile(rf"(?<!\w){words}(?!\w)", re.IGNORECASE)


def _contains(value: str) -> Any:
    escaped = (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return col(Post.content).ilike(f"%{escaped}%", escape=_LIKE_ESCAPE)


NEWEST_FIRST = (col(Post.created_at).desc(), col(Post.id).desc())


class PostRepository(BaseRepository[Post]):
    """Post repository class.

    Reads return ``PostRead`` with the owner joined in by the query itself,
    shaped by ``with_owner_projection``.
    """

    model = Post

    def _select_with_owner(self) -> Any:
        return select(Post, User.username).join(
            User, col(Post.owner_id) == col(User.id), isouter=True
        )

    @staticmethod
    def _to_read(
        post: Post,
        username: Optional[str],
        with_owner_projection: OwnerProjection = OwnerProjection.FULL,
    ) -> PostRead:
        if with_owner_projection is OwnerProjection.USERNAME:
            owner = PostOwner(username=username)
        else:
            owner = PostOwner(id=post.owner_id, username=username)
        return PostRead(
            id=post.id,  # type: ignore[arg-type]
            content=post.content,
            owner=owner,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )

    async def _fetch(
        self,
        stmt: Any,
        operation: str,
        with_owner_projection: OwnerProjection = OwnerProjection.FULL,
    ) -> List[PostRead]:
        async with self.get_session() as db:
            try:
                result = await db.exec(stmt)
                return [
                    self._to_read(post, username, with_owner_projection)
                    for post, username in result.all()
                ]
            except SQLAlchemyError as e:
                self._handle_db_error(e, operation)

    # ----------------- READ ----------------- #
    async def find_by_id(
        self,
        post_id: int,
        with_owner_projection: OwnerProjection = OwnerProjection.FULL,
    ) -> Optional[PostRead]:
        stmt = self._select_with_owner().where(col(Post.id) == post_id)
        posts = await self._fetch(stmt, "find_by_id", with_owner_projection)
        return posts[0] if posts else None

    async def find_all(
        self,
        *,
        skip: int = 0,
        limit: int = 6,
        with_owner_projection: OwnerProjection = OwnerProjection.FULL,
    ) -> List[PostRead]:
        """Newest first, ``skip``/``limit`` paging."""
        stmt = (
            self._select_with_owner()
            .order_by(*NEWEST_FIRST)
            .offset(max(skip, 0))
            .limit(limit)
        )
        return await self._fetch(stmt, "find_all", with_owner_projection)

    async def find_by_owner(
        self,
        owner_id: int,
        with_owner_projection: OwnerProjection = OwnerProjection.FULL,
    ) -> List[PostRead]:
        stmt = (
            self._select_with_owner()
            .where(col(Post.owner_id) == owner_id)
            .order_by(*NEWEST_FIRST)
        )
        return await self._fetch(stmt, "find_by_owner", with_owner_projection)

    async def text_search(
        self,
        query: Optional[str],
        with_owner_projection: OwnerProjection = OwnerProjection.USERNAME,
    ) -> List[PostRead]:
        parsed = parse_search_query(query)
        if parsed.is_empty:
            return []

        # Substring prefilter in SQL; whole-word matching and exclusions in Python.
        stmt = self._select_with_owner()
        if parsed.terms:
            stmt = stmt.where(or_(*[_contains(term) for term in parsed.terms]))
        for phrase in parsed.phrases:
            stmt = stmt.where(and_(*[_contains(word) for word in phrase.split()]))
        candidates = await self._fetch(
            stmt.order_by(*NEWEST_FIRST), "text_search", with_owner_projection
        )
        return [post for post in candidates if parsed.matches(post.content)]

    async def approximate_count(self) -> int:
        """Planner estimate on PostgreSQL, plain count elsewhere."""
        async with self.get_session() as db:
            try:
                dialect = db.bind.dialect.name if db.bind is not None else ""
                if dialect == "postgresql":
                    result = await db.exec(  # type: ignore[call-overload]
                        text(
                            "SELECT reltuples::bigint FROM pg_class WHERE relname = :table"
                        ).bindparams(table=Post.__tablename__)
                    )
                    estimate = result.scalar()
                    # -1 until the table is first analyzed
                    if estimate is not None and estimate >= 0:
                        return int(estimate)
            except SQLAlchemyError as e:
                self._handle_db_error(e, "approximate_count")
        return await self.count()

    # ----------------- WRITE ----------------- #
    async def insert(
        self,
        owner_id: int,
        content: str,
        on_commit: Optional[Callable[[PostRead], None]] = None,
    ) -> PostRead:
        """Insert a post; ``on_commit`` gets the stored record right after the commit."""
        now = settings.get_now()
        async with self.get_session() as db:
            try:
                post = Post(content=content, owner_id=owner_id, created_at=now, updated_at=now)
                db.add(post)
                await db.flush()
                await db.refresh(post)
                username = (
                    await db.exec(select(User.username).where(col(User.id) == owner_id))
                ).first()
                await db.commit()
                created = self._to_read(post, username)
                if on_commit is not None:
                    on_commit(created)
                return created
            except SQLAlchemyError as e:
                await db.rollback()
                self._handle_db_error(e, "insert")

    async def update_by_id_and_owner(
        self,
        post_id: int,
        owner_id: int,
        patch: Dict[str, Any],
        on_commit: Optional[Callable[[PostRead], None]] = None,
    ) -> Optional[PostRead]:
        """Apply ``patch`` only if the post still exists and belongs to ``owner_id``.

        Returns the updated post, or None when no row matched. ``on_commit``
        runs with the updated post before the session is released, so callers
        observe commits in the order they happened.
        """
        values = {
            key: value
            for key, value in patch.items()
            if key not in ("id", "owner_id", "created_at", "updated_at")
        }
        values["updated_at"] = settings.get_now()

        async with self.get_session() as db:
            try:
                result = await db.exec(  # type: ignore[call-overload]
                    update(Post)
                    .where(col(Post.id) == post_id, col(Post.owner_id) == owner_id)
                    .values(**values)
                )
                if result.rowcount == 0:
                    await db.rollback()
                    return None
                row = (
                    await db.exec(
                        self._select_with_owner()
                        .where(col(Post.id) == post_id)
                        .execution_options(populate_existing=True)
                    )
                ).first()
                await db.commit()
                post, username = row
                updated = self._to_read(post, username)
                if on_commit is not None:
                    on_commit(updated)
                return updated
            except SQLAlchemyError as e:
                await db.rollback()
                self._handle_db_error(e, "update_by_id_and_owner")

    async def delete_by_id_and_owner(
        self,
        post_id: int,
        owner_id: int,
        on_commit: Optional[Callable[[], None]] = None,
    ) -> bool:
        """Delete the post if it still belongs to ``owner_id``; False when no row matched."""
        async with self.get_session() as db:
            try:
                result = await db.exec(  # type: ignore[call-overload]
                    delete(Post).where(
                        col(Post.id) == post_id, col(Post.owner_id) == owner_id
                    )
                )
                await db.commit()
                if result.rowcount == 0:
                    return False
                if on_commit is not None:
                    on_commit()
                return True
            except SQLAlchemyError as e:
                await db.rollback()
                self._handle_db_error(e, "delete_by_id_and_owner")
