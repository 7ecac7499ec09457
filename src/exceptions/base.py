"""Root of the mission control error hierarchy.

Subclasses register under their ``error_code`` when they are defined, so an
error code read back from a response or a log line resolves to its class.
"""

from http import HTTPStatus
from typing import Any, ClassVar


class DroneMissionError(Exception):
    """Base exception for all drone mission control errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        http_status: HTTP status returned to API callers.
        context: Structured details about the failure (ids, statuses).
    """

    error_code: ClassVar[str] = "INTERNAL_ERROR"
    http_status: ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR

    _registry: ClassVar[dict[str, type["DroneMissionError"]]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._registry[cls.error_code] = cls

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            context: Structured details about the failure.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_log_fields(self) -> dict[str, Any]:
        """Fields to pass as ``extra`` when logging this error.

        The message is left out; callers log it as the record message.
        """
        fields: dict[str, Any] = {
            "error_code": self.error_code,
            "http_status": int(self.http_status),
            "exception_type": type(self).__name__,
        }
        if self.context:
            fields["error_context"] = self.context
        return fields

    @classmethod
    def get_by_error_code(cls, error_code: str) -> type["DroneMissionError"] | None:
        """Resolve an error code to the class that raises it, if any."""
        return cls._registry.get(error_code)

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (context: {self.context})"
        return self.message
