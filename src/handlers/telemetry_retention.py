"""Scheduled Lambda handler that prunes expired telemetry."""

from http import HTTPStatus
from typing import Any

from src.config import get_settings
from src.exceptions.client_errors import ValidationError
from src.exceptions.handlers import create_exception_handler, create_success_response
from src.logging.adapters.lambda_adapter import set_lambda_context
from src.logging.logger import setup_logging
from src.telemetry.aggregator import TelemetryAggregator
from src.telemetry.repository import TelemetryRepository
from src.utils.dynamodb import DynamoDBClient


def _get_aggregator() -> TelemetryAggregator:
    """Build an aggregator over the configured table."""
    settings = get_settings()
    return TelemetryAggregator(
        TelemetryRepository(DynamoDBClient(settings.table_name)),
        retention_days=settings.telemetry_retention_days,
    )


def _extract_retention_days(event: dict[str, Any]) -> int | None:
    """Read an optional ``retention_days`` override from the schedule input.

    Raises:
        ValidationError: If the override is not an integer.
    """
    raw_value = event.get("retention_days")
    if raw_value is None:
        return None
    if isinstance(raw_value, bool) or not isinstance(raw_value, int):
        raise ValidationError(
            "retention_days must be an integer",
            field="retention_days",
            value=raw_value,
        )
    return raw_value


@create_exception_handler
def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Delete telemetry older than the retention period.

    Args:
        event: EventBridge scheduled event, optionally carrying
            ``retention_days``.
        context: Lambda context.

    Returns:
        Summary with the number of deleted samples.
    """
    setup_logging()
    set_lambda_context(event, context)
    retention_days = _extract_retention_days(event)
    deleted = _get_aggregator().run_retention_sweep(retention_days)
    return create_success_response(HTTPStatus.OK, {"deleted": deleted})
