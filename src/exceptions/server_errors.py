"""Server error exceptions (HTTP 5xx)."""

from http import HTTPStatus
from typing import Any, ClassVar

from src.exceptions.base import DroneMissionError


class ServerError(DroneMissionError):
    """Base class for all server errors (5xx)."""

    error_code: ClassVar[str] = "SERVER_ERROR"
    http_status: ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR


class DatabaseError(ServerError):
    """Database operation failed."""

    error_code: ClassVar[str] = "DATABASE_ERROR"
    http_status: ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize database error.

        Args:
            message: Description of the failure.
            operation: Table operation that failed (e.g. "put_item").
            context: Additional context information.
        """
        context_dict = context or {}
        if operation is not None:
            context_dict["operation"] = operation
        super().__init__(message, context=context_dict)


class ExternalServiceError(ServerError):
    """External service call failed."""

    error_code: ClassVar[str] = "EXTERNAL_SERVICE_ERROR"
    http_status: ClassVar[int] = HTTPStatus.BAD_GATEWAY

    def __init__(
        self,
        message: str,
        *,
        service_name: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize external service error.

        Args:
            message: Description of the failure.
            service_name: Name of the external service that failed.
            context: Additional context information.
        """
        context_dict = context or {}
        if service_name is not None:
            context_dict["service_name"] = service_name
        super().__init__(message, context=context_dict)


class ServiceUnavailableError(ServerError):
    """Service temporarily unavailable."""

    error_code: ClassVar[str] = "SERVICE_UNAVAILABLE"
    http_status: ClassVar[int] = HTTPStatus.SERVICE_UNAVAILABLE
