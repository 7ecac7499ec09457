"""Mission controller Lambda handler."""

import json
from collections.abc import Callable
from http import HTTPStatus
from typing import Any, TypeVar

from src.config import get_settings
from src.exceptions.client_errors import BadRequestError, NotFoundError, ValidationError
from src.exceptions.handlers import create_exception_handler, create_success_response
from src.fleet.repository import DroneRepository
from src.logging.adapters.lambda_adapter import set_lambda_context
from src.logging.logger import setup_logging
from src.mission.models import (
    Mission,
    MissionCreate,
    MissionPriority,
    MissionStatus,
    MissionType,
    MissionUpdate,
)
from src.mission.repository import MissionRepository
from src.mission.scheduler import MissionScheduler
from src.utils.dynamodb import DynamoDBClient
from src.utils.locks import KeyedLock

# Shared by every invocation served by this process
_drone_locks = KeyedLock()

MISSIONS_RESOURCE = "/api/v1/missions"
MISSION_RESOURCE = "/api/v1/missions/{mission_id}"
DRONE_MISSIONS_RESOURCE = "/api/v1/drones/{drone_id}/missions"


def _get_scheduler() -> MissionScheduler:
    """Build a scheduler over the configured table."""
    db_client = DynamoDBClient(get_settings().table_name)
    return MissionScheduler(
        MissionRepository(db_client),
        DroneRepository(db_client),
        drone_locks=_drone_locks,
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


def _extract_json_body(event: dict[str, Any]) -> dict[str, Any]:
    """Decode the JSON request body.

    Raises:
        BadRequestError: If the body is missing or not a JSON object.
    """
    raw_body = event.get("body")
    if not raw_body:
        raise BadRequestError(message="Request body is required")
    try:
        body = json.loads(raw_body)
    except json.JSONDecodeError as error:
        raise BadRequestError(message=f"Request body is not valid JSON: {error.msg}") from error
    if not isinstance(body, dict):
        raise BadRequestError(message="Request body must be a JSON object")
    return body


def _get_query_parameters(event: dict[str, Any]) -> dict[str, str]:
    return event.get("queryStringParameters") or {}


E = TypeVar("E")


def _parse_enum_filter(enum_type: Callable[[str], E], field: str, raw_value: str | None) -> E | None:
    """Parse an optional enum query parameter.

    Raises:
        ValidationError: If the value is not a member of the enum.
    """
    if raw_value is None:
        return None
    try:
        return enum_type(raw_value)
    except ValueError as error:
        raise ValidationError(f"Invalid {field}: {raw_value}", field=field, value=raw_value) from error


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


def _missions_response(missions: list[Mission]) -> dict[str, Any]:
    return create_success_response(
        HTTPStatus.OK,
        {"count": len(missions), "missions": [mission.to_response() for mission in missions]},
    )


def _mission_response(mission: Mission, status_code: int = HTTPStatus.OK) -> dict[str, Any]:
    return create_success_response(status_code, mission.to_response())


def _schedule_mission(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """Schedule a mission from the request body."""
    request = MissionCreate.model_validate(_extract_json_body(event))
    mission = scheduler.schedule_mission(request)
    return _mission_response(mission, HTTPStatus.CREATED)


def _list_missions(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """List missions, optionally filtered by status, type and priority."""
    query_params = _get_query_parameters(event)
    missions = scheduler.list_missions(
        status=_parse_enum_filter(MissionStatus, "status", query_params.get("status")),
        mission_type=_parse_enum_filter(MissionType, "mission_type", query_params.get("mission_type")),
        priority=_parse_enum_filter(MissionPriority, "priority", query_params.get("priority")),
    )
    return _missions_response(missions)


def _list_upcoming_missions(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """List scheduled missions starting soon."""
    hours = _parse_positive_int(
        "hours",
        _get_query_parameters(event).get("hours"),
        get_settings().upcoming_window_hours,
    )
    return _missions_response(scheduler.list_upcoming_missions(hours))


def _list_active_missions(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """List missions whose window contains the current time."""
    _ = event
    return _missions_response(scheduler.list_active_missions())


def _list_drone_missions(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """List one drone's missions."""
    drone_id = _extract_path_parameter(event, "drone_id")
    return _missions_response(scheduler.list_missions_for_drone(drone_id))


def _get_mission(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """Get a single mission by ID."""
    mission_id = _extract_path_parameter(event, "mission_id")
    return _mission_response(scheduler.get_mission(mission_id))


def _update_mission(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """Apply a partial update to a mission."""
    mission_id = _extract_path_parameter(event, "mission_id")
    patch = MissionUpdate.model_validate(_extract_json_body(event))
    return _mission_response(scheduler.update_mission(mission_id, patch))


def _delete_mission(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """Delete a mission."""
    mission_id = _extract_path_parameter(event, "mission_id")
    scheduler.delete_mission(mission_id)
    return create_success_response(HTTPStatus.OK, {"mission_id": mission_id, "deleted": True})


def _start_mission(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """Start a scheduled mission."""
    mission_id = _extract_path_parameter(event, "mission_id")
    return _mission_response(scheduler.start_mission(mission_id))


def _complete_mission(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """Complete a mission."""
    mission_id = _extract_path_parameter(event, "mission_id")
    return _mission_response(scheduler.complete_mission(mission_id))


def _cancel_mission(scheduler: MissionScheduler, event: dict[str, Any]) -> dict[str, Any]:
    """Cancel a scheduled mission."""
    mission_id = _extract_path_parameter(event, "mission_id")
    return _mission_response(scheduler.cancel_mission(mission_id))


RouteHandler = Callable[[MissionScheduler, dict[str, Any]], dict[str, Any]]

ROUTES: dict[tuple[str, str], RouteHandler] = {
    (MISSIONS_RESOURCE, "POST"): _schedule_mission,
    (MISSIONS_RESOURCE, "GET"): _list_missions,
    (f"{MISSIONS_RESOURCE}/upcoming", "GET"): _list_upcoming_missions,
    (f"{MISSIONS_RESOURCE}/active", "GET"): _list_active_missions,
    (MISSION_RESOURCE, "GET"): _get_mission,
    (MISSION_RESOURCE, "PATCH"): _update_mission,
    (MISSION_RESOURCE, "DELETE"): _delete_mission,
    (f"{MISSION_RESOURCE}/start", "POST"): _start_mission,
    (f"{MISSION_RESOURCE}/complete", "POST"): _complete_mission,
    (f"{MISSION_RESOURCE}/cancel", "POST"): _cancel_mission,
    (DRONE_MISSIONS_RESOURCE, "GET"): _list_drone_missions,
}


def _route_request(event: dict[str, Any]) -> dict[str, Any]:
    """Route the request to the handler registered for its path and method.

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
    return route_handler(_get_scheduler(), event)


@create_exception_handler
def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Handle mission scheduling, lifecycle and query requests.

    Args:
        event: API Gateway proxy event.
        context: Lambda context.

    Returns:
        API Gateway proxy response.
    """
    setup_logging()
    set_lambda_context(event, context)
    return _route_request(event)
