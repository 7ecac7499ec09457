"""Type definitions for Lambda handlers and collaborator protocols."""

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Protocol, TypedDict

if TYPE_CHECKING:
    from src.fleet.models import Drone, DroneStatus


class LambdaContext(Protocol):
    """AWS Lambda context object interface."""

    function_name: str
    function_version: str
    invoked_function_arn: str
    memory_limit_in_mb: int
    aws_request_id: str
    log_group_name: str
    log_stream_name: str

    def get_remaining_time_in_millis(self) -> int:
        """Return remaining execution time in milliseconds."""
        ...


class LambdaResponse(TypedDict):
    """Standard Lambda response structure."""

    statusCode: int
    body: str


class DroneRegistry(Protocol):
    """Drone lookups and mutations the mission and telemetry core rely on."""

    def exists(self, drone_id: str) -> bool:
        """Return True if the drone is registered."""
        ...

    def find(self, drone_id: str) -> "Drone | None":
        """Return the drone, or None if it is not registered."""
        ...

    def update_status(self, drone_id: str, new_status: "DroneStatus") -> "Drone":
        """Set the drone status."""
        ...

    def update_location_and_battery(
        self,
        drone_id: str,
        latitude: float,
        longitude: float,
        battery_level: float,
    ) -> None:
        """Record the drone's last known position and battery level."""
        ...


# Returns the current time as a timezone-aware UTC datetime
Clock = Callable[[], datetime]

# For truly dynamic JSON data
LambdaEvent = dict[str, object]
