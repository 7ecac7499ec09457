"""Telemetry domain models for drone data ingestion."""

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.constants import PARTITION_KEY_DRONE, SORT_KEY_PREFIX_TELEMETRY
from src.utils.timestamps import UtcDatetime, format_timestamp, get_utc_now, parse_timestamp


def build_telemetry_sort_key(timestamp: datetime, telemetry_id: str = "") -> str:
    """Sort key ordering a drone's samples by time, ties broken by id."""
    return f"{SORT_KEY_PREFIX_TELEMETRY}{format_timestamp(timestamp)}#{telemetry_id}"


class TelemetrySample(BaseModel):
    """One immutable telemetry reading from a drone."""

    model_config = ConfigDict(frozen=True)

    telemetry_id: str = Field(default_factory=lambda: str(uuid4()))
    drone_id: str = Field(min_length=1)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    altitude: float = Field(default=0, ge=0)
    battery: float = Field(ge=0, le=100)
    speed: float = Field(default=0, ge=0)
    heading: float = Field(default=0, ge=0, le=360)
    signal_strength: float = Field(default=100, ge=0, le=100)
    timestamp: UtcDatetime = Field(default_factory=get_utc_now)
    mission_id: str | None = None

    @property
    def location(self) -> dict[str, Any]:
        """Position as a GeoJSON point."""
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    def to_response(self) -> dict[str, Any]:
        """Serialize for API responses and published events."""
        body = self.model_dump(mode="json")
        body["location"] = self.location
        return body

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format."""
        item: dict[str, Any] = {
            "pk": f"{PARTITION_KEY_DRONE}{self.drone_id}",
            "sk": build_telemetry_sort_key(self.timestamp, self.telemetry_id),
            "telemetry_id": self.telemetry_id,
            "drone_id": self.drone_id,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "battery": self.battery,
            "speed": self.speed,
            "heading": self.heading,
            "signal_strength": self.signal_strength,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.mission_id is not None:
            item["mission_id"] = self.mission_id
        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "TelemetrySample":
        """Create from DynamoDB item format."""
        return cls(
            telemetry_id=item["telemetry_id"],
            drone_id=item["drone_id"],
            latitude=item["latitude"],
            longitude=item["longitude"],
            altitude=item.get("altitude", 0),
            battery=item["battery"],
            speed=item.get("speed", 0),
            heading=item.get("heading", 0),
            signal_strength=item.get("signal_strength", 100),
            timestamp=parse_timestamp(item["timestamp"]),
            mission_id=item.get("mission_id"),
        )


class TelemetryEvent(BaseModel):
    """Event fanned out to the subscribers of a drone channel."""

    model_config = ConfigDict(frozen=True)

    event_type: str = Field(default="telemetry_update")
    drone_id: str
    sample: TelemetrySample

    def to_payload(self) -> dict[str, Any]:
        """Serialize for transports."""
        return {
            "event_type": self.event_type,
            "drone_id": self.drone_id,
            "telemetry": self.sample.to_response(),
        }


class TelemetryStats(BaseModel):
    """Aggregates over a drone's telemetry window."""

    avg_battery: float = Field(default=0)
    avg_speed: float = Field(default=0)
    avg_altitude: float = Field(default=0)
    total_distance: float = Field(default=0, description="Kilometres")
    data_points: int = Field(default=0, ge=0)
