"""Client error exceptions (HTTP 4xx)."""

from http import HTTPStatus
from typing import Any, ClassVar

import pydantic

from src.exceptions.base import DroneMissionError


class ClientError(DroneMissionError):
    """Base class for all client errors (4xx)."""

    error_code: ClassVar[str] = "CLIENT_ERROR"
    http_status: ClassVar[int] = HTTPStatus.BAD_REQUEST


class ValidationError(ClientError):
    """Input failed field-level validation.

    Carries every violated field, not only the first one, under
    ``context["errors"]`` as ``{"field": ..., "message": ...}`` entries.
    """

    error_code: ClassVar[str] = "VALIDATION_ERROR"
    http_status: ClassVar[int] = HTTPStatus.BAD_REQUEST

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        errors: list[dict[str, str]] | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with optional field info.

        Args:
            message: Description of the validation failure.
            field: Name of a single field that failed validation.
            value: The invalid value.
            errors: Every field violation found in the input.
            context: Additional context information.
        """
        context_dict = context or {}
        if field is not None:
            context_dict["field"] = field
        if value is not None:
            context_dict["value"] = value
        if errors:
            context_dict["errors"] = errors
        super().__init__(message, context=context_dict)

    @property
    def errors(self) -> list[dict[str, str]]:
        """Return the list of field violations."""
        if "errors" in self.context:
            return list(self.context["errors"])
        if "field" in self.context:
            return [{"field": self.context["field"], "message": self.message}]
        return []

    @classmethod
    def from_pydantic(
        cls,
        error: pydantic.ValidationError,
        *,
        message: str = "Request validation failed",
    ) -> "ValidationError":
        """Build a ValidationError listing every pydantic violation.

        Args:
            error: The pydantic validation error.
            message: Summary message for the response.

        Returns:
            ValidationError carrying all field violations.
        """
        violations = [
            {
                "field": ".".join(str(part) for part in detail["loc"]) or "__root__",
                "message": detail["msg"],
            }
            for detail in error.errors()
        ]
        return cls(message, errors=violations)


class BadRequestError(ClientError):
    """Generic bad request."""

    error_code: ClassVar[str] = "BAD_REQUEST"
    http_status: ClassVar[int] = HTTPStatus.BAD_REQUEST


class NotFoundError(ClientError):
    """Requested resource not found."""

    error_code: ClassVar[str] = "NOT_FOUND"
    http_status: ClassVar[int] = HTTPStatus.NOT_FOUND

    def __init__(
        self,
        message: str,
        *,
        resource_type: str | None = None,
        resource_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize not found error with optional resource info.

        Args:
            message: Description of what was not found.
            resource_type: Type of resource (e.g., "Mission", "Drone").
            resource_id: ID of the resource that was not found.
            context: Additional context information.
        """
        context_dict = context or {}
        if resource_type is not None:
            context_dict["resource_type"] = resource_type
        if resource_id is not None:
            context_dict["resource_id"] = resource_id
        super().__init__(message, context=context_dict)


class ConflictError(ClientError):
    """The drone already has an active mission in the requested time range."""

    error_code: ClassVar[str] = "CONFLICT"
    http_status: ClassVar[int] = HTTPStatus.CONFLICT


class InvalidStateError(ClientError):
    """Operation is not allowed from the resource's current status."""

    error_code: ClassVar[str] = "INVALID_STATE"
    http_status: ClassVar[int] = HTTPStatus.CONFLICT

    def __init__(
        self,
        message: str,
        *,
        current_status: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid state error.

        Args:
            message: Description of the rejected operation.
            current_status: Status the resource was in.
            context: Additional context information.
        """
        context_dict = context or {}
        if current_status is not None:
            context_dict["current_status"] = current_status
        super().__init__(message, context=context_dict)


class TooEarlyError(ClientError):
    """Operation attempted before its scheduled time."""

    error_code: ClassVar[str] = "TOO_EARLY"
    http_status: ClassVar[int] = HTTPStatus.TOO_EARLY
