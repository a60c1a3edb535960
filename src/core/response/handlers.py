import logging
from typing import Any, List, Optional

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core import exceptions
from src.core.response.schemas import BaseResponse, ErrorDetail, ErrorResponse, ListResponse

logger = logging.getLogger(__name__)


def success_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    body = BaseResponse[Any](success=True, message=message, data=data)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def list_response(
    items: List[Any],
    message: Optional[str] = None,
    page: Optional[int] = None,
    per_page: Optional[int] = None,
) -> JSONResponse:
    body = ListResponse[Any](
        success=True, message=message, data=items, page=page, per_page=per_page
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=jsonable_encoder(body),
    )


def error_response(
    error_code: str,
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    details: Optional[List[dict]] = None,
) -> JSONResponse:
    body = ErrorResponse(
        message=message,
        error_code=error_code,
        error_details=[ErrorDetail(**detail) for detail in details or []],
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def service_error_response(exc: exceptions.ServiceException) -> JSONResponse:
    return error_response(
        error_code=exc.error_code,
        message=str(exc.detail),
        status_code=exc.status_code,
        details=[detail.model_dump() for detail in exc.error_details],
    )


async def service_exception_handler(request: Request, exc: exceptions.ServiceException):
    """Errors raised outside a route body, e.g. by a dependency."""
    logger.warning("%s on %s: %s", exc.error_code, request.url.path, exc.detail)
    return service_error_response(exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())[1:]),
            "code": "VALIDATION_ERROR",
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    return error_response(
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details=details,
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all; never leaks internal details."""
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    return error_response(
        error_code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
