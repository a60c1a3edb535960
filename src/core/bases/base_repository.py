import logging
from typing import Any, Callable, Dict, Generic, List, NoReturn, Optional, Type, TypeVar, Union
from sqlmodel import SQLModel, func, select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from pydantic import BaseModel

from src.core.config import settings
from src.core.exceptions import StoreUnavailableException

T = TypeVar("T", bound=SQLModel)

logger = logging.getLogger(__name__)


class RepositoryError(StoreUnavailableException):
    """Raised when the database rejects or fails an operation."""

    pass


class BaseRepository(Generic[T]):
    model: Type[T]

    def __init__(self, get_session: Callable[..., AsyncSession]):
        self.get_session = get_session

    def _handle_db_error(self, error: SQLAlchemyError, operation: str) -> NoReturn:
        """Handle database errors and raise appropriate exceptions."""
        logger.error(
            "Database error during %s on %s: %s", operation, self.model.__name__, error
        )
        if isinstance(error, IntegrityError):
            raise RepositoryError(
                f"Database integrity error during {operation}"
            ) from error
        raise RepositoryError(f"Database error during {operation}") from error

    def _build_select_stmt(self, **filters) -> Any:
        """Build select statement with optional equality filters."""
        stmt = select(self.model)

        for field, value in filters.items():
            if hasattr(self.model, field):
                stmt = stmt.where(getattr(self.model, field) == value)

        return stmt

    # ----------------- READ ----------------- #
    async def get_one(self, **filters) -> Optional[T]:
        """Get a single item matching the filters."""
        async with self.get_session() as db:
            try:
                stmt = self._build_select_stmt(**filters)
                result = await db.exec(stmt)
                return result.first()
            except SQLAlchemyError as e:
                self._handle_db_error(e, "get_one")

    async def get_many(
        self,
        *,
        skip: int = 0,
        limit: Optional[int] = 100,
        order_by: Optional[List[Any]] = None,
        **filters,
    ) -> List[T]:
        """Get multiple items with filtering, ordering and pagination."""
        async with self.get_session() as db:
            try:
                stmt = self._build_select_stmt(**filters)
                if order_by:
                    stmt = stmt.order_by(*order_by)
                stmt = stmt.offset(skip)
                if limit is not None:
                    stmt = stmt.limit(limit)

                result = await db.exec(stmt)
                return list(result.all())
            except SQLAlchemyError as e:
                self._handle_db_error(e, "get_many")

    async def count(self, **filters) -> int:
        """Exact count of items matching optional filters."""
        async with self.get_session() as db:
            try:
                stmt = self._build_select_stmt(**filters)
                count_stmt = select(func.count()).select_from(stmt.subquery())
                result = await db.exec(count_stmt)
                return result.one()
            except SQLAlchemyError as e:
                self._handle_db_error(e, "count")

    # ----------------- WRITE ----------------- #
    async def create(self, obj_in: Union[Dict[str, Any], BaseModel]) -> T:
        """Create a new item."""
        if isinstance(obj_in, BaseModel):
            obj_in = obj_in.model_dump(exclude_unset=True)

        async with self.get_session() as db:
            try:
                obj = self.model(**obj_in)  # type: ignore
                db.add(obj)
                await db.commit()
                await db.refresh(obj)
                return obj
            except SQLAlchemyError as e:
                await db.rollback()
                self._handle_db_error(e, "create")

    async def update(
        self,
        item_id: Any,
        obj_in: Union[Dict[str, Any], BaseModel],
        exclude_unset: bool = True,
    ) -> Optional[T]:
        """Update an existing item and refresh its ``updated_at``."""
        if isinstance(obj_in, BaseModel):
            update_data = obj_in.model_dump(exclude_unset=exclude_unset)
        else:
            update_data = dict(obj_in)

        # Remove ID from update data to prevent changing primary key
        update_data.pop("id", None)

        async with self.get_session() as db:
            try:
                db_obj = await db.get(self.model, item_id)
                if not db_obj:
                    return None

                for key, value in update_data.items():
                    if hasattr(db_obj, key) and key not in ("created_at", "updated_at"):
                        setattr(db_obj, key, value)
                if hasattr(db_obj, "updated_at"):
                    db_obj.updated_at = settings.get_now()

                db.add(db_obj)
                await db.commit()
                await db.refresh(db_obj)
                return db_obj
            except SQLAlchemyError as e:
                await db.rollback()
                self._handle_db_error(e, "update")
