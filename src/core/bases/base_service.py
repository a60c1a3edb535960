from typing import Any, Dict, Generic, Optional, TypeVar

from sqlmodel import SQLModel

from src.core import exceptions
from src.core.bases.base_repository import BaseRepository

T = TypeVar("T", bound=SQLModel)


class BaseService(Generic[T]):
    """Base service; subclasses plug business rules into the ``_validate_*`` hooks.

    Operations return ``{"data": ..., "message": ...}`` dicts which the routers
    turn into response envelopes.
    """

    resource_name: str = "Item"

    def __init__(self, repository: BaseRepository[T]):
        self.repository = repository

    @staticmethod
    def _result(data: Any, message: str, **extra: Any) -> Dict[str, Any]:
        return {"data": data, "message": message, **extra}

    def _not_found(self, item_id: Optional[Any] = None) -> exceptions.NotFoundException:
        if item_id is None:
            return exceptions.NotFoundException(f"{self.resource_name} not found")
        return exceptions.NotFoundException(
            f"{self.resource_name} with id {item_id} not found"
        )

    async def _validate_create(self, create_data: Dict[str, Any]) -> None:
        """Validate data before creation."""
        pass

    async def _validate_update(self, item_id: Any, update_data: Dict[str, Any]) -> None:
        """Validate data before the item is loaded for update."""
        pass
