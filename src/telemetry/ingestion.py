"""Telemetry ingestion and history queries."""

import logging
from datetime import datetime

from src.constants import DEFAULT_TELEMETRY_HISTORY_LIMIT
from src.exceptions.client_errors import NotFoundError, ValidationError
from src.logging.context import bind_context
from src.telemetry.channels import ChannelRegistry
from src.telemetry.models import TelemetryEvent, TelemetrySample
from src.telemetry.repository import TelemetryRepository
from src.types import DroneRegistry
from src.utils.locks import KeyedLock

logger = logging.getLogger(__name__)


class TelemetryService:
    """Persists samples, refreshes drone live state and fans samples out."""

    def __init__(
        self,
        telemetry: TelemetryRepository,
        drones: DroneRegistry,
        channels: ChannelRegistry,
        *,
        drone_locks: KeyedLock | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            telemetry: Sample storage.
            drones: Registry used to check drones and record live state.
            channels: Per-drone subscriber channels.
            drone_locks: Per-drone locks keeping each drone's samples in
                order from write to publication.
        """
        self._telemetry = telemetry
        self._drones = drones
        self._channels = channels
        self._drone_locks = drone_locks if drone_locks is not None else KeyedLock()

    def _require_drone(self, drone_id: str) -> None:
        if not self._drones.exists(drone_id):
            raise NotFoundError(
                f"Drone {drone_id} not found",
                resource_type="Drone",
                resource_id=drone_id,
            )

    def _publish(self, sample: TelemetrySample) -> None:
        event = TelemetryEvent(drone_id=sample.drone_id, sample=sample)
        try:
            delivered = self._channels.publish(sample.drone_id, event)
        except Exception:
            logger.warning("Telemetry publication failed", exc_info=True)
            return
        logger.debug("Telemetry published", extra={"subscribers": delivered})

    def ingest(self, sample: TelemetrySample) -> TelemetrySample:
        """Store a sample, update the drone and notify subscribers.

        The write and the drone update must succeed; publication is best
        effort and never fails the call.

        Args:
            sample: Validated telemetry sample.

        Returns:
            The stored sample.

        Raises:
            NotFoundError: If the drone does not exist. Nothing is stored
                or published in that case.
        """
        with bind_context(drone_id=sample.drone_id):
            self._require_drone(sample.drone_id)

            with self._drone_locks.hold(sample.drone_id):
                self._telemetry.append(sample)
                self._drones.update_location_and_battery(
                    sample.drone_id,
                    latitude=sample.latitude,
                    longitude=sample.longitude,
                    battery_level=sample.battery,
                )
                self._publish(sample)

            logger.info(
                "Telemetry ingested",
                extra={"telemetry_id": sample.telemetry_id, "battery": sample.battery},
            )
            return sample

    def list_telemetry_for_drone(
        self,
        drone_id: str,
        limit: int = DEFAULT_TELEMETRY_HISTORY_LIMIT,
    ) -> list[TelemetrySample]:
        """Return a drone's newest samples first.

        Raises:
            ValidationError: If ``limit`` is not positive.
        """
        if limit <= 0:
            raise ValidationError("limit must be positive", field="limit", value=limit)
        return self._telemetry.list_recent(drone_id, limit=limit)

    def get_latest_telemetry(self, drone_id: str) -> TelemetrySample:
        """Return a drone's most recent sample.

        Raises:
            NotFoundError: If the drone has no telemetry.
        """
        samples = self._telemetry.list_recent(drone_id, limit=1)
        if not samples:
            raise NotFoundError(
                "No telemetry data found for this drone",
                resource_type="Telemetry",
                resource_id=drone_id,
            )
        return samples[0]

    def list_telemetry_in_range(
        self,
        drone_id: str,
        start_time: datetime,
        end_time: datetime,
    ) -> list[TelemetrySample]:
        """Return a drone's samples between two instants, oldest first.

        Raises:
            ValidationError: If start_time is after end_time.
        """
        if start_time > end_time:
            raise ValidationError(
                "start_time must not be after end_time",
                errors=[{"field": "start_time", "message": "start_time must not be after end_time"}],
            )
        return self._telemetry.list_between(drone_id, start_time, end_time)
