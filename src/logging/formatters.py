"""Log formatters for JSON (deployed) and human (local) output."""

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any, ClassVar

from src.constants import SERVICE_NAME
from src.logging.context import get_correlation_id, get_extra_context

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_RECORD_ATTRIBUTES: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys() | {"message", "asctime"}
)

_MAX_LOGGER_NAME_LENGTH = 30


def get_record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Collect context and ``extra`` fields for a record.

    Bound context comes first so per-call ``extra`` values win on collision.

    Args:
        record: The log record.

    Returns:
        Ordered mapping of structured fields.
    """
    fields: dict[str, Any] = {}
    corr_id = get_correlation_id()
    if corr_id:
        fields["correlation_id"] = corr_id
    fields.update(get_extra_context())
    fields.update(
        {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_ATTRIBUTES and not key.startswith("_")
        }
    )
    return fields


class JSONFormatter(logging.Formatter):
    """Render each record as a single JSON object per line."""

    def __init__(
        self,
        *,
        service_name: str = SERVICE_NAME,
        include_timestamp: bool = True,
        include_location: bool = True,
    ) -> None:
        """Initialize the JSON formatter.

        Args:
            service_name: Service identifier for log aggregation.
            include_timestamp: Whether to include timestamp field.
            include_location: Whether to include module/function/line fields.
        """
        super().__init__()
        self._service_name = service_name
        self._include_timestamp = include_timestamp
        self._include_location = include_location

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as a JSON string."""
        log_entry: dict[str, Any] = {}

        if self._include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(record.created, UTC).isoformat(
                timespec="milliseconds"
            )

        log_entry["level"] = record.levelname
        log_entry["logger"] = record.name
        log_entry["message"] = record.getMessage()
        log_entry["service"] = self._service_name

        if self._include_location:
            log_entry["module"] = record.module
            log_entry["function"] = record.funcName
            log_entry["line"] = record.lineno

        log_entry.update(get_record_fields(record))

        if record.exc_info:
            exception_type, exception_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exception_type.__name__ if exception_type else "Unknown",
                "message": str(exception_value) if exception_value else "",
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_entry, default=str)


class HumanFormatter(logging.Formatter):
    """Pipe-separated, optionally colourised output for local development."""

    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET: ClassVar[str] = "\033[0m"

    def __init__(self, *, use_colors: bool = True) -> None:
        """Initialize the human formatter.

        Args:
            use_colors: Whether to use ANSI colors in output.
        """
        super().__init__()
        self._use_colors = use_colors

    def _format_level(self, level: str) -> str:
        if not self._use_colors:
            return f"{level:<8}"
        return f"{self.COLORS.get(level, '')}{level:<8}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record for human readability."""
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")

        logger_name = record.name
        if len(logger_name) > _MAX_LOGGER_NAME_LENGTH:
            logger_name = "..." + logger_name[-(_MAX_LOGGER_NAME_LENGTH - 3) :]

        parts = [
            timestamp,
            self._format_level(record.levelname),
            f"{logger_name:<{_MAX_LOGGER_NAME_LENGTH}}",
            record.getMessage(),
        ]

        fields = get_record_fields(record)
        if fields:
            parts.append(" ".join(f"{key}={value}" for key, value in fields.items()))

        result = " | ".join(parts)

        if record.exc_info:
            result += "\n" + "".join(traceback.format_exception(*record.exc_info))

        return result
