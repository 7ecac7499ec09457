"""Fleet domain models for drone registration."""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from src.constants import PARTITION_KEY_DRONE, SORT_KEY_METADATA, STATUS_KEY_PREFIX_DRONE
from src.utils.timestamps import format_timestamp, get_utc_now, parse_timestamp


class DroneStatus(StrEnum):
    """Operational states of a drone."""

    IDLE = "idle"
    IN_MISSION = "in-mission"
    MAINTENANCE = "maintenance"
    OFFLINE = "offline"


class GeoLocation(BaseModel):
    """Last known position of a drone."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class Drone(BaseModel):
    """Registered drone entity."""

    drone_id: str = Field(default_factory=lambda: str(uuid4()), min_length=1)
    name: str = Field(min_length=1, max_length=100)
    model: str = Field(min_length=1)
    status: DroneStatus = Field(default=DroneStatus.IDLE)
    battery_level: float = Field(default=100, ge=0, le=100)
    max_flight_time: float = Field(default=30, ge=0, description="Minutes")
    current_location: GeoLocation | None = None
    created_at: datetime = Field(default_factory=get_utc_now)
    updated_at: datetime = Field(default_factory=get_utc_now)

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format."""
        item: dict[str, Any] = {
            "pk": f"{PARTITION_KEY_DRONE}{self.drone_id}",
            "sk": SORT_KEY_METADATA,
            "drone_id": self.drone_id,
            "name": self.name,
            "model": self.model,
            "status": self.status,
            "battery_level": self.battery_level,
            "max_flight_time": self.max_flight_time,
            "created_at": format_timestamp(self.created_at),
            "updated_at": format_timestamp(self.updated_at),
            "gsi1pk": f"{STATUS_KEY_PREFIX_DRONE}{self.status}",
            "gsi1sk": format_timestamp(self.created_at),
        }
        if self.current_location:
            item["current_location"] = self.current_location.model_dump()
        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Drone":
        """Create from DynamoDB item format."""
        location_data = item.get("current_location")
        return cls(
            drone_id=item["drone_id"],
            name=item["name"],
            model=item["model"],
            status=DroneStatus(item["status"]),
            battery_level=item.get("battery_level", 100),
            max_flight_time=item.get("max_flight_time", 30),
            current_location=GeoLocation(**location_data) if location_data else None,
            created_at=parse_timestamp(item["created_at"]),
            updated_at=parse_timestamp(item["updated_at"]),
        )
