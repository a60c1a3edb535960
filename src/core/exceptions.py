"""Service level exceptions.

Every exception carries the HTTP status and error code the routers answer
with, so the transport layer never has to guess.
"""

from typing import List, Optional

from fastapi import status

from src.core.response.schemas import ErrorDetail


class ServiceException(Exception):
    """Base class for errors raised by services and repositories."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "SERVICE_ERROR"

    def __init__(
        self,
        detail: str = "Service error",
        error_details: Optional[List[ErrorDetail]] = None,
    ):
        super().__init__(detail)
        self.detail = detail
        self.error_details = error_details or []


class UnauthenticatedException(ServiceException):
    """No valid principal for an operation that needs one."""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHENTICATED"

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(detail)


class UnauthorizedException(ServiceException):
    """The principal is not allowed to touch the record."""

    status_code = status.HTTP_403_FORBIDDEN
    error_code = "UNAUTHORIZED"

    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(detail)


class NotFoundException(ServiceException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, detail: str = "Item not found"):
        super().__init__(detail)


class ValidationException(ServiceException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "VALIDATION_ERROR"

    def __init__(self, detail: str, field: str = ""):
        super().__init__(
            detail,
            error_details=[
                ErrorDetail(field=field, code=self.error_code, message=detail)
            ],
        )
        self.field = field


class StoreUnavailableException(ServiceException):
    """The database failed; nothing was committed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "STORE_UNAVAILABLE"
