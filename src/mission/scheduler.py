"""Mission scheduling, conflict detection and lifecycle transitions.

Every committed mission status write is followed by the drone status
implied by ``get_drone_status_for_mission``. Conflict checks and the writes
they guard run under a per-drone lock, so two requests for the same drone
cannot both pass the check before either has written.
"""

import logging
from datetime import timedelta

from src.constants import DEFAULT_UPCOMING_WINDOW_HOURS
from src.exceptions.client_errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    TooEarlyError,
    ValidationError,
)
from src.logging.context import bind_context
from src.mission.models import (
    Mission,
    MissionCreate,
    MissionPriority,
    MissionStatus,
    MissionType,
    MissionUpdate,
    get_drone_status_for_mission,
)
from src.mission.repository import MissionRepository
from src.types import Clock, DroneRegistry
from src.utils.locks import KeyedLock
from src.utils.timestamps import get_utc_now

logger = logging.getLogger(__name__)


class MissionScheduler:
    """Owns mission records and enforces the one-slot-per-drone invariant."""

    def __init__(
        self,
        missions: MissionRepository,
        drones: DroneRegistry,
        *,
        drone_locks: KeyedLock | None = None,
        clock: Clock = get_utc_now,
    ) -> None:
        """Initialize the scheduler.

        Args:
            missions: Mission repository.
            drones: Registry used to check drones and push status changes.
            drone_locks: Per-drone locks; share one instance between
                schedulers in the same process.
            clock: Returns the current aware UTC time.
        """
        self._missions = missions
        self._drones = drones
        self._drone_locks = drone_locks if drone_locks is not None else KeyedLock()
        self._clock = clock

    def _require_drone(self, drone_id: str) -> None:
        if not self._drones.exists(drone_id):
            raise NotFoundError(
                f"Drone {drone_id} not found",
                resource_type="Drone",
                resource_id=drone_id,
            )

    def _check_conflicts(self, mission: Mission, *, exclude_self: bool) -> None:
        conflicts = self._missions.find_overlapping(
            mission.drone_id,
            mission.start_time,
            mission.end_time,
            exclude_mission_id=mission.mission_id if exclude_self else None,
        )
        if conflicts:
            conflict_ids = [conflict.mission_id for conflict in conflicts]
            logger.info("Mission conflict detected", extra={"conflicting_missions": conflict_ids})
            raise ConflictError(
                "Drone already has a mission in that time range",
                context={"drone_id": mission.drone_id, "conflicting_missions": conflict_ids},
            )

    def _apply_drone_status(self, mission: Mission) -> None:
        drone_status = get_drone_status_for_mission(mission.status)
        self._drones.update_status(mission.drone_id, drone_status)
        logger.debug(
            "Drone status synchronised with mission",
            extra={"mission_status": mission.status, "drone_status": drone_status},
        )

    def _set_status(self, mission: Mission, new_status: MissionStatus) -> Mission:
        updated = self._missions.update_status(mission.mission_id, new_status)
        self._apply_drone_status(updated)
        return updated

    def schedule_mission(self, request: MissionCreate) -> Mission:
        """Schedule a new mission for a drone.

        Args:
            request: Validated mission request.

        Returns:
            The persisted mission, in ``scheduled`` status.

        Raises:
            NotFoundError: If the drone does not exist.
            ConflictError: If the drone has an overlapping active mission.
        """
        with bind_context(drone_id=request.drone_id):
            self._require_drone(request.drone_id)
            mission = Mission.from_request(request)

            with self._drone_locks.hold(request.drone_id):
                self._check_conflicts(mission, exclude_self=False)
                self._missions.create(mission)
                self._apply_drone_status(mission)

            logger.info(
                "Mission scheduled",
                extra={
                    "mission_id": mission.mission_id,
                    "start_time": mission.start_time.isoformat(),
                    "end_time": mission.end_time.isoformat(),
                },
            )
            return mission

    def update_mission(self, mission_id: str, patch: MissionUpdate) -> Mission:
        """Apply a partial update to a mission.

        Moving the mission in time re-runs the conflict check against the
        drone's other missions.

        Args:
            mission_id: Mission identifier.
            patch: Fields to change.

        Returns:
            The updated mission.

        Raises:
            NotFoundError: If the mission does not exist.
            ValidationError: If the merged window ends before it starts.
            ConflictError: If the new window overlaps another active mission.
        """
        current = self._missions.get(mission_id)
        changes = patch.get_changes()
        if not changes:
            return current

        with bind_context(drone_id=current.drone_id, mission_id=mission_id):
            with self._drone_locks.hold(current.drone_id):
                current = self._missions.get(mission_id)
                merged = current.model_dump()
                merged.update(changes)
                if merged["end_time"] <= merged["start_time"]:
                    raise ValidationError(
                        "end_time must be after start_time",
                        errors=[{"field": "end_time", "message": "end_time must be after start_time"}],
                    )
                updated = Mission.model_validate(merged)

                if patch.changes_schedule:
                    self._check_conflicts(updated, exclude_self=True)

                updated = self._missions.update(updated, changed_fields=changes)
                if updated.status != current.status:
                    self._apply_drone_status(updated)

            logger.info("Mission updated", extra={"changed_fields": sorted(changes)})
            return updated

    def start_mission(self, mission_id: str) -> Mission:
        """Move a scheduled mission to ``in-progress``.

        Raises:
            NotFoundError: If the mission does not exist.
            InvalidStateError: If the mission is not scheduled.
            TooEarlyError: If the mission's start time has not been reached.
        """
        drone_id = self._missions.get(mission_id).drone_id
        with bind_context(drone_id=drone_id, mission_id=mission_id):
            with self._drone_locks.hold(drone_id):
                mission = self._missions.get(mission_id)
                if mission.status != MissionStatus.SCHEDULED:
                    raise InvalidStateError(
                        "Mission is not in scheduled status",
                        current_status=mission.status,
                    )
                now = self._clock()
                if now < mission.start_time:
                    raise TooEarlyError(
                        "Mission start time has not been reached",
                        context={"start_time": mission.start_time.isoformat()},
                    )

                started = self._set_status(mission, MissionStatus.IN_PROGRESS)
                logger.info("Mission started")
                return started

    def complete_mission(self, mission_id: str) -> Mission:
        """Mark a mission completed.

        No status guard applies: cancelled or already completed missions can
        be completed again.

        Raises:
            NotFoundError: If the mission does not exist.
        """
        drone_id = self._missions.get(mission_id).drone_id
        with bind_context(drone_id=drone_id, mission_id=mission_id):
            with self._drone_locks.hold(drone_id):
                mission = self._missions.get(mission_id)
                completed = self._set_status(mission, MissionStatus.COMPLETED)
                logger.info("Mission completed", extra={"previous_status": mission.status})
                return completed

    def cancel_mission(self, mission_id: str) -> Mission:
        """Cancel a mission that has not started.

        Raises:
            NotFoundError: If the mission does not exist.
            InvalidStateError: If the mission is not scheduled.
        """
        drone_id = self._missions.get(mission_id).drone_id
        with bind_context(drone_id=drone_id, mission_id=mission_id):
            with self._drone_locks.hold(drone_id):
                mission = self._missions.get(mission_id)
                if mission.status != MissionStatus.SCHEDULED:
                    raise InvalidStateError(
                        "Only scheduled missions can be cancelled",
                        current_status=mission.status,
                    )
                cancelled = self._set_status(mission, MissionStatus.CANCELLED)
                logger.info("Mission cancelled")
                return cancelled

    def delete_mission(self, mission_id: str) -> None:
        """Delete a mission. The drone's status is left unchanged.

        Raises:
            NotFoundError: If the mission does not exist.
        """
        drone_id = self._missions.get(mission_id).drone_id
        with self._drone_locks.hold(drone_id):
            self._missions.get(mission_id)
            self._missions.delete(mission_id)
        logger.info(
            "Mission deleted",
            extra={"mission_id": mission_id, "drone_id": drone_id},
        )

    def get_mission(self, mission_id: str) -> Mission:
        """Get one mission.

        Raises:
            NotFoundError: If the mission does not exist.
        """
        return self._missions.get(mission_id)

    def list_missions(
        self,
        *,
        status: MissionStatus | None = None,
        mission_type: MissionType | None = None,
        priority: MissionPriority | None = None,
    ) -> list[Mission]:
        """List missions with optional filters, earliest start first."""
        return self._missions.list_all(status=status, mission_type=mission_type, priority=priority)

    def list_missions_for_drone(self, drone_id: str) -> list[Mission]:
        """List one drone's missions, earliest start first."""
        return self._missions.list_for_drone(drone_id)

    def list_upcoming_missions(self, hours: int = DEFAULT_UPCOMING_WINDOW_HOURS) -> list[Mission]:
        """List scheduled missions starting within the next ``hours`` hours.

        Raises:
            ValidationError: If ``hours`` is not positive.
        """
        if hours <= 0:
            raise ValidationError("hours must be positive", field="hours", value=hours)
        now = self._clock()
        return self._missions.list_by_status(
            MissionStatus.SCHEDULED,
            start_from=now,
            start_to=now + timedelta(hours=hours),
        )

    def list_active_missions(self) -> list[Mission]:
        """List scheduled or in-progress missions whose window contains now."""
        now = self._clock()
        active: list[Mission] = []
        for status in (MissionStatus.SCHEDULED, MissionStatus.IN_PROGRESS):
            active.extend(
                mission
                for mission in self._missions.list_by_status(status, start_to=now)
                if mission.end_time >= now
            )
        return sorted(active, key=lambda mission: mission.start_time)
