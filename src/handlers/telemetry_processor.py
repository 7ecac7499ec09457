"""Telemetry processor Lambda handler.

Accepts samples from the IoT rule (the raw sample document is the event)
or from API Gateway, and serves the telemetry read routes.
"""

import json
import logging
from collections.abc import Callable
from datetime import datetime
from functools import lru_cache
from http import HTTPStatus
from typing import Any

from src.config import get_settings
from src.constants import IOT_FLUSH_TIMEOUT_SECONDS
from src.exceptions.client_errors import BadRequestError, NotFoundError, ValidationError
from src.exceptions.handlers import create_exception_handler, create_success_response
from src.fleet.repository import DroneRepository
from src.logging.adapters.lambda_adapter import set_lambda_context
from src.logging.logger import setup_logging
from src.telemetry.aggregator import TelemetryAggregator
from src.telemetry.channels import ChannelRegistry
from src.telemetry.ingestion import TelemetryService
from src.telemetry.iot_forwarder import IotTopicForwarder
from src.telemetry.models import TelemetrySample
from src.telemetry.repository import TelemetryRepository
from src.utils.dynamodb import DynamoDBClient
from src.utils.locks import KeyedLock
from src.utils.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

# Live for the lifetime of the execution environment
_channels = ChannelRegistry()
_drone_locks = KeyedLock()

TELEMETRY_RESOURCE = "/api/v1/telemetry"
DRONE_TELEMETRY_RESOURCE = "/api/v1/drones/{drone_id}/telemetry"


@lru_cache(maxsize=1)
def _get_forwarder(endpoint: str, max_size: int) -> IotTopicForwarder:
    """Get the IoT Core forwarder, created once per endpoint."""
    return IotTopicForwarder(endpoint, max_size=max_size)


def _get_db_client() -> DynamoDBClient:
    """Get a DynamoDB client for the configured table."""
    return DynamoDBClient(get_settings().table_name)


def _get_service(db_client: DynamoDBClient) -> TelemetryService:
    """Build the ingestion service."""
    return TelemetryService(
        TelemetryRepository(db_client),
        DroneRepository(db_client),
        _channels,
        drone_locks=_drone_locks,
    )


def _get_aggregator(db_client: DynamoDBClient) -> TelemetryAggregator:
    """Build the statistics aggregator."""
    return TelemetryAggregator(
        TelemetryRepository(db_client),
        retention_days=get_settings().telemetry_retention_days,
    )


def _extract_path_parameter(event: dict[str, Any], parameter: str) -> str:
    """Extract a path parameter from API Gateway event.

    Raises:
        BadRequestError: If parameter is missing.
    """
    path_params: dict[str, str] = event.get("pathParameters") or {}
    value: str | None = path_params.get(parameter)
    if not value:
        raise BadRequestError(message=f"Missing path parameter: {parameter}")
    return value


def _get_query_parameters(event: dict[str, Any]) -> dict[str, str]:
    return event.get("queryStringParameters") or {}


def _parse_positive_int(field: str, raw_value: str | None, default: int) -> int:
    """Parse an optional positive integer query parameter.

    Raises:
        ValidationError: If the value is not a positive integer.
    """
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError as error:
        raise ValidationError(f"{field} must be an integer", field=field, value=raw_value) from error
    if value <= 0:
        raise ValidationError(f"{field} must be positive", field=field, value=raw_value)
    return value


def _parse_required_timestamp(query_params: dict[str, str], field: str) -> datetime:
    """Parse a mandatory ISO-8601 query parameter.

    Raises:
        ValidationError: If the value is missing or malformed.
    """
    raw_value = query_params.get(field)
    if not raw_value:
        raise ValidationError(f"{field} is required", field=field)
    try:
        return parse_timestamp(raw_value)
    except ValueError as error:
        raise ValidationError(
            f"{field} must be an ISO-8601 timestamp",
            field=field,
            value=raw_value,
        ) from error


def _ingest_sample(payload: dict[str, Any]) -> dict[str, Any]:
    """Validate and ingest one sample document."""
    sample = TelemetrySample.model_validate(payload)
    settings = get_settings()
    forwarder = (
        _get_forwarder(settings.iot_endpoint, settings.subscriber_queue_size)
        if settings.enable_iot_forwarding
        else None
    )
    if forwarder is not None:
        _channels.join(forwarder, sample.drone_id)

    service = _get_service(_get_db_client())
    try:
        stored = service.ingest(sample)
    except NotFoundError:
        # Unknown drones must not keep a channel alive
        if forwarder is not None:
            _channels.leave(forwarder, sample.drone_id)
        raise

    # Lambda freezes the worker between invocations
    if forwarder is not None and not forwarder.flush(IOT_FLUSH_TIMEOUT_SECONDS):
        logger.warning("IoT forwarding still pending", extra={"drone_id": sample.drone_id})
    return create_success_response(HTTPStatus.CREATED, stored.to_response())


def _ingest_from_api(event: dict[str, Any]) -> dict[str, Any]:
    """Ingest a sample posted through API Gateway."""
    raw_body = event.get("body")
    if not raw_body:
        raise BadRequestError(message="Request body is required")
    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError as error:
        raise BadRequestError(message=f"Request body is not valid JSON: {error.msg}") from error
    if not isinstance(body, dict):
        raise BadRequestError(message="Request body must be a JSON object")
    return _ingest_sample(body)


def _list_telemetry(event: dict[str, Any]) -> dict[str, Any]:
    """Return a drone's recent samples, newest first."""
    drone_id = _extract_path_parameter(event, "drone_id")
    limit = _parse_positive_int(
        "limit",
        _get_query_parameters(event).get("limit"),
        get_settings().telemetry_history_limit,
    )
    samples = _get_service(_get_db_client()).list_telemetry_for_drone(drone_id, limit)
    return create_success_response(
        HTTPStatus.OK,
        {"count": len(samples), "telemetry": [sample.to_response() for sample in samples]},
    )


def _get_latest_telemetry(event: dict[str, Any]) -> dict[str, Any]:
    """Return a drone's most recent sample."""
    drone_id = _extract_path_parameter(event, "drone_id")
    sample = _get_service(_get_db_client()).get_latest_telemetry(drone_id)
    return create_success_response(HTTPStatus.OK, sample.to_response())


def _list_telemetry_in_range(event: dict[str, Any]) -> dict[str, Any]:
    """Return a drone's samples between start_time and end_time."""
    drone_id = _extract_path_parameter(event, "drone_id")
    query_params = _get_query_parameters(event)
    start_time = _parse_required_timestamp(query_params, "start_time")
    end_time = _parse_required_timestamp(query_params, "end_time")
    samples = _get_service(_get_db_client()).list_telemetry_in_range(drone_id, start_time, end_time)
    return create_success_response(
        HTTPStatus.OK,
        {"count": len(samples), "telemetry": [sample.to_response() for sample in samples]},
    )


def _get_telemetry_stats(event: dict[str, Any]) -> dict[str, Any]:
    """Return windowed statistics for a drone."""
    drone_id = _extract_path_parameter(event, "drone_id")
    hours = _parse_positive_int(
        "hours",
        _get_query_parameters(event).get("hours"),
        get_settings().stats_window_hours,
    )
    stats = _get_aggregator(_get_db_client()).get_stats(drone_id, hours)
    return create_success_response(
        HTTPStatus.OK,
        {"drone_id": drone_id, "period_hours": hours, "stats": stats.model_dump()},
    )


ROUTES: dict[tuple[str, str], Callable[[dict[str, Any]], dict[str, Any]]] = {
    (TELEMETRY_RESOURCE, "POST"): _ingest_from_api,
    (DRONE_TELEMETRY_RESOURCE, "GET"): _list_telemetry,
    (f"{DRONE_TELEMETRY_RESOURCE}/latest", "GET"): _get_latest_telemetry,
    (f"{DRONE_TELEMETRY_RESOURCE}/range", "GET"): _list_telemetry_in_range,
    (f"{DRONE_TELEMETRY_RESOURCE}/stats", "GET"): _get_telemetry_stats,
}


def _route_request(event: dict[str, Any]) -> dict[str, Any]:
    """Route an API Gateway request.

    Raises:
        NotFoundError: If no route matches.
    """
    resource = event.get("resource", "")
    http_method = event.get("httpMethod", "")
    route_handler = ROUTES.get((resource, http_method))
    if route_handler is None:
        raise NotFoundError(
            f"No route for {http_method} {resource}",
            resource_type="Route",
            resource_id=f"{http_method} {resource}",
        )
    return route_handler(event)


@create_exception_handler
def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Ingest telemetry or answer a telemetry query.

    Args:
        event: API Gateway proxy event, or the sample document forwarded
            by the IoT rule.
        context: Lambda context.

    Returns:
        API Gateway proxy response.
    """
    setup_logging()
    set_lambda_context(event, context)
    if "httpMethod" in event:
        return _route_request(event)
    return _ingest_sample(event)
