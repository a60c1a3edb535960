from typing import Any, Awaitable, Callable, Dict, List, Optional
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from src.core import exceptions
from src.core.response.handlers import list_response, service_error_response, success_response


class BaseRouter:
    """Base router class; subclasses register their routes in ``_register_routes``."""

    def __init__(
        self,
        tags: Optional[List[str]] = None,
        prefix: str = "",
        dependencies: Optional[List[Callable]] = None
    ):
        self.tags = tags or [self.__class__.__name__.replace("Router", "")]
        self.prefix = prefix

        # Create router
        self.router = APIRouter(
            prefix=self.prefix,
            tags=self.tags, #type:ignore
            dependencies=dependencies or [] #type:ignore
        )

        # Register routes
        self._register_routes()

    def _register_routes(self) -> None:
        raise NotImplementedError

    async def _respond(
        self,
        call: Awaitable[Dict[str, Any]],
        status_code: int = status.HTTP_200_OK,
    ) -> JSONResponse:
        """Await a service call and wrap its result, or its error, in an envelope."""
        try:
            result = await call
        except exceptions.ServiceException as e:
            return service_error_response(e)

        if isinstance(result["data"], list):
            return list_response(
                items=result["data"],
                message=result["message"],
                page=result.get("page"),
                per_page=result.get("per_page"),
            )
        return success_response(
            data=result["data"],
            message=result["message"],
            status_code=status_code,
        )

    def get_router(self) -> APIRouter:
        """Get the FastAPI router instance."""
        return self.router
