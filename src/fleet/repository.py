"""Drone registry backed by DynamoDB."""

import logging

from src.constants import (
    INDEX_STATUS,
    PARTITION_KEY_DRONE,
    SORT_KEY_METADATA,
    STATUS_KEY_PREFIX_DRONE,
)
from src.exceptions.client_errors import NotFoundError
from src.fleet.models import Drone, DroneStatus, GeoLocation
from src.utils.dynamodb import DynamoDBClient
from src.utils.timestamps import format_timestamp, get_utc_now

logger = logging.getLogger(__name__)


def _drone_key(drone_id: str) -> tuple[str, str]:
    return f"{PARTITION_KEY_DRONE}{drone_id}", SORT_KEY_METADATA


class DroneRepository:
    """Repository for drone records.

    Satisfies the ``DroneRegistry`` protocol consumed by the mission
    scheduler and the telemetry service.
    """

    def __init__(self, dynamodb_client: DynamoDBClient) -> None:
        """Initialize the drone repository.

        Args:
            dynamodb_client: DynamoDB client instance.
        """
        self._db = dynamodb_client

    def create(self, drone: Drone) -> Drone:
        """Register a new drone.

        Args:
            drone: Drone to create.

        Returns:
            Created drone.
        """
        self._db.put_item(drone.to_dynamodb_item())
        logger.info("Drone registered", extra={"drone_id": drone.drone_id})
        return drone

    def find(self, drone_id: str) -> Drone | None:
        """Get a drone by ID, or None if it is not registered."""
        pk, sk = _drone_key(drone_id)
        item = self._db.find_item(pk, sk)
        if item is None:
            return None
        return Drone.from_dynamodb_item(item)

    def get(self, drone_id: str) -> Drone:
        """Get a drone by ID.

        Args:
            drone_id: Drone identifier.

        Returns:
            Drone entity.

        Raises:
            NotFoundError: If drone does not exist.
        """
        drone = self.find(drone_id)
        if drone is None:
            raise NotFoundError(
                f"Drone {drone_id} not found",
                resource_type="Drone",
                resource_id=drone_id,
            )
        return drone

    def exists(self, drone_id: str) -> bool:
        """Check whether a drone is registered."""
        return self.find(drone_id) is not None

    def update_status(
        self,
        drone_id: str,
        new_status: DroneStatus,
    ) -> Drone:
        """Update drone status.

        Args:
            drone_id: Drone identifier.
            new_status: Target status.

        Returns:
            Updated drone.

        Raises:
            NotFoundError: If drone does not exist.
        """
        pk, sk = _drone_key(drone_id)
        try:
            item = self._db.update_item(
                pk=pk,
                sk=sk,
                updates={
                    "status": new_status,
                    "updated_at": format_timestamp(get_utc_now()),
                    "gsi1pk": f"{STATUS_KEY_PREFIX_DRONE}{new_status}",
                },
            )
        except NotFoundError as error:
            raise NotFoundError(
                f"Drone {drone_id} not found",
                resource_type="Drone",
                resource_id=drone_id,
            ) from error
        return Drone.from_dynamodb_item(item)

    def update_location_and_battery(
        self,
        drone_id: str,
        latitude: float,
        longitude: float,
        battery_level: float,
    ) -> None:
        """Record the drone's last known position and battery level.

        Raises:
            NotFoundError: If drone does not exist.
        """
        location = GeoLocation(latitude=latitude, longitude=longitude)
        pk, sk = _drone_key(drone_id)
        try:
            self._db.update_item(
                pk=pk,
                sk=sk,
                updates={
                    "current_location": location.model_dump(),
                    "battery_level": battery_level,
                    "updated_at": format_timestamp(get_utc_now()),
                },
            )
        except NotFoundError as error:
            raise NotFoundError(
                f"Drone {drone_id} not found",
                resource_type="Drone",
                resource_id=drone_id,
            ) from error

    def list_by_status(
        self,
        status: DroneStatus,
        *,
        limit: int = 50,
    ) -> list[Drone]:
        """List drones by status, newest registrations first.

        Args:
            status: Drone status to filter by.
            limit: Maximum number of drones to return.

        Returns:
            List of matching drones.
        """
        items = self._db.query(
            pk=f"{STATUS_KEY_PREFIX_DRONE}{status}",
            index_name=INDEX_STATUS,
            limit=limit,
            scan_forward=False,
        )
        return [Drone.from_dynamodb_item(item) for item in items]

    def delete(self, drone_id: str) -> None:
        """Delete a drone record. Missions and telemetry are left in place.

        Raises:
            NotFoundError: If drone does not exist.
        """
        self.get(drone_id)
        pk, sk = _drone_key(drone_id)
        self._db.delete_item(pk, sk)
        logger.info("Drone deleted", extra={"drone_id": drone_id})
