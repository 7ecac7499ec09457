"""Mission domain models."""

import math
from datetime import datetime
from enum import StrEnum
from typing import Any, Self
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

from src.constants import (
    PARTITION_KEY_DRONE,
    PARTITION_KEY_MISSION,
    SORT_KEY_METADATA,
    SORT_KEY_PREFIX_MISSION,
    STATUS_KEY_PREFIX_MISSION,
)
from src.fleet.models import DroneStatus
from src.utils.timestamps import UtcDatetime, format_timestamp, get_utc_now, parse_timestamp


class MissionStatus(StrEnum):
    """Mission lifecycle states."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MissionType(StrEnum):
    """Kinds of mission a drone can fly."""

    SURVEILLANCE = "surveillance"
    DELIVERY = "delivery"
    MAPPING = "mapping"
    INSPECTION = "inspection"
    OTHER = "other"


class MissionPriority(StrEnum):
    """Mission priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# Statuses that occupy a drone's time slot
BLOCKING_STATUSES: frozenset[MissionStatus] = frozenset(
    {MissionStatus.SCHEDULED, MissionStatus.IN_PROGRESS}
)

# Drone status applied after every committed mission status write
DRONE_STATUS_BY_MISSION_STATUS: dict[MissionStatus, DroneStatus] = {
    MissionStatus.SCHEDULED: DroneStatus.IDLE,
    MissionStatus.IN_PROGRESS: DroneStatus.IN_MISSION,
    MissionStatus.COMPLETED: DroneStatus.IDLE,
    MissionStatus.CANCELLED: DroneStatus.IDLE,
}


def get_drone_status_for_mission(status: MissionStatus) -> DroneStatus:
    """Return the drone status implied by a mission status.

    Args:
        status: Newly committed mission status.

    Returns:
        Status the owning drone must be set to.
    """
    return DRONE_STATUS_BY_MISSION_STATUS[status]


def check_intervals_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    """Half-open interval overlap test for [start, end) ranges."""
    return first_start < second_end and second_start < first_end


class Coordinate(BaseModel):
    """Geographic coordinate."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class MissionCoordinates(BaseModel):
    """Start and end points of a mission route."""

    start: Coordinate
    end: Coordinate


class MissionCreate(BaseModel):
    """Operator request to schedule a mission."""

    drone_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    start_time: UtcDatetime
    end_time: UtcDatetime
    mission_type: MissionType = Field(default=MissionType.OTHER)
    priority: MissionPriority = Field(default=MissionPriority.MEDIUM)
    coordinates: MissionCoordinates

    @field_validator("name", "description")
    @classmethod
    def strip_text(cls, value: str | None) -> str | None:
        """Trim surrounding whitespace."""
        return value.strip() if value is not None else None

    @model_validator(mode="after")
    def validate_time_window(self) -> Self:
        """End time must be strictly after start time."""
        if self.end_time <= self.start_time:
            error_message = "end_time must be after start_time"
            raise ValueError(error_message)
        return self


class MissionUpdate(BaseModel):
    """Partial mission update; only provided fields are applied."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=1000)
    start_time: UtcDatetime | None = None
    end_time: UtcDatetime | None = None
    status: MissionStatus | None = None
    mission_type: MissionType | None = None
    priority: MissionPriority | None = None
    coordinates: MissionCoordinates | None = None

    @model_validator(mode="after")
    def validate_time_window(self) -> Self:
        """When both times are given, end time must follow start time."""
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            error_message = "end_time must be after start_time"
            raise ValueError(error_message)
        return self

    @property
    def changes_schedule(self) -> bool:
        """True if the patch moves the mission in time."""
        return self.start_time is not None or self.end_time is not None

    def get_changes(self) -> dict[str, Any]:
        """Return only the fields the caller set."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class Mission(BaseModel):
    """Complete mission entity."""

    mission_id: str = Field(default_factory=lambda: str(uuid4()))
    drone_id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    start_time: UtcDatetime
    end_time: UtcDatetime
    status: MissionStatus = Field(default=MissionStatus.SCHEDULED)
    mission_type: MissionType = Field(default=MissionType.OTHER)
    priority: MissionPriority = Field(default=MissionPriority.MEDIUM)
    coordinates: MissionCoordinates
    created_at: datetime = Field(default_factory=get_utc_now)
    updated_at: datetime = Field(default_factory=get_utc_now)

    @property
    def duration_minutes(self) -> int:
        """Mission length in whole minutes, rounded up."""
        return math.ceil((self.end_time - self.start_time).total_seconds() / 60)

    @property
    def is_blocking(self) -> bool:
        """True if the mission occupies its drone's time slot."""
        return self.status in BLOCKING_STATUSES

    def overlaps(self, start_time: datetime, end_time: datetime) -> bool:
        """Check whether this mission's interval intersects [start_time, end_time)."""
        return check_intervals_overlap(self.start_time, self.end_time, start_time, end_time)

    @classmethod
    def from_request(cls, request: MissionCreate) -> "Mission":
        """Build a scheduled mission from a validated create request."""
        return cls(**request.model_dump(), status=MissionStatus.SCHEDULED)

    def to_response(self) -> dict[str, Any]:
        """Serialize for API responses."""
        body = self.model_dump(mode="json")
        body["duration_minutes"] = self.duration_minutes
        return body

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format."""
        start_time = format_timestamp(self.start_time)
        item: dict[str, Any] = {
            "pk": f"{PARTITION_KEY_MISSION}{self.mission_id}",
            "sk": SORT_KEY_METADATA,
            "mission_id": self.mission_id,
            "drone_id": self.drone_id,
            "name": self.name,
            "start_time": start_time,
            "end_time": format_timestamp(self.end_time),
            "status": self.status,
            "mission_type": self.mission_type,
            "priority": self.priority,
            "coordinates": self.coordinates.model_dump(),
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "gsi1pk": f"{STATUS_KEY_PREFIX_MISSION}{self.status}",
            "gsi1sk": start_time,
            "gsi2pk": f"{PARTITION_KEY_DRONE}{self.drone_id}",
            "gsi2sk": f"{SORT_KEY_PREFIX_MISSION}{start_time}",
        }
        if self.description is not None:
            item["description"] = self.description
        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Mission":
        """Create from DynamoDB item format."""
        return cls(
            mission_id=item["mission_id"],
            drone_id=item["drone_id"],
            name=item["name"],
            description=item.get("description"),
            start_time=parse_timestamp(item["start_time"]),
            end_time=parse_timestamp(item["end_time"]),
            status=MissionStatus(item["status"]),
            mission_type=MissionType(item["mission_type"]),
            priority=MissionPriority(item["priority"]),
            coordinates=MissionCoordinates(**item["coordinates"]),
            created_at=parse_timestamp(item["created_at"]),
            updated_at=parse_timestamp(item["updated_at"]),
        )
