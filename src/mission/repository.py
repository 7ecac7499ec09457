"""Mission data access layer."""

from collections.abc import Iterable
from datetime import datetime

from src.constants import (
    INDEX_DRONE_SCHEDULE,
    INDEX_STATUS,
    PARTITION_KEY_DRONE,
    PARTITION_KEY_MISSION,
    SORT_KEY_METADATA,
    SORT_KEY_PREFIX_MISSION,
    STATUS_KEY_PREFIX_MISSION,
)
from src.exceptions.client_errors import NotFoundError
from src.mission.models import (
    BLOCKING_STATUSES,
    Mission,
    MissionPriority,
    MissionStatus,
    MissionType,
)
from src.utils.dynamodb import DynamoDBClient
from src.utils.timestamps import format_timestamp, get_utc_now


# Index key attributes derived from each mission field
_INDEX_ATTRIBUTES_BY_FIELD: dict[str, tuple[str, ...]] = {
    "status": ("gsi1pk",),
    "start_time": ("gsi1sk", "gsi2sk"),
}


def _mission_key(mission_id: str) -> tuple[str, str]:
    return f"{PARTITION_KEY_MISSION}{mission_id}", SORT_KEY_METADATA


def _sort_by_start_time(missions: list[Mission]) -> list[Mission]:
    return sorted(missions, key=lambda mission: (mission.start_time, mission.mission_id))


class MissionRepository:
    """Repository for mission CRUD and schedule queries."""

    def __init__(self, dynamodb_client: DynamoDBClient) -> None:
        """Initialize the mission repository.

        Args:
            dynamodb_client: DynamoDB client instance.
        """
        self._db = dynamodb_client

    def create(self, mission: Mission) -> Mission:
        """Persist a new mission.

        Args:
            mission: Mission to create.

        Returns:
            Created mission.
        """
        self._db.put_item(mission.to_dynamodb_item())
        return mission

    def find(self, mission_id: str) -> Mission | None:
        """Get a mission by ID, or None if it does not exist."""
        pk, sk = _mission_key(mission_id)
        item = self._db.find_item(pk, sk)
        if item is None:
            return None
        return Mission.from_dynamodb_item(item)

    def get(self, mission_id: str) -> Mission:
        """Get a mission by ID.

        Args:
            mission_id: Mission identifier.

        Returns:
            Mission entity.

        Raises:
            NotFoundError: If mission does not exist.
        """
        mission = self.find(mission_id)
        if mission is None:
            raise NotFoundError(
                f"Mission {mission_id} not found",
                resource_type="Mission",
                resource_id=mission_id,
            )
        return mission

    def update(self, mission: Mission, changed_fields: Iterable[str] | None = None) -> Mission:
        """Write a mission's new field values.

        Index keys derived from a written field are rewritten with it, so
        status and time changes stay queryable.

        Args:
            mission: Mission with its new field values.
            changed_fields: Fields to write; the other stored attributes are
                left as they are. None writes every attribute.

        Returns:
            Updated mission.

        Raises:
            NotFoundError: If mission does not exist.
        """
        mission = mission.model_copy(update={"updated_at": get_utc_now()})
        item = mission.to_dynamodb_item()
        pk = item.pop("pk")
        sk = item.pop("sk")
        if changed_fields is not None:
            attributes = {"updated_at"}
            for field in changed_fields:
                attributes.add(field)
                attributes.update(_INDEX_ATTRIBUTES_BY_FIELD.get(field, ()))
            item = {name: value for name, value in item.items() if name in attributes}
        try:
            self._db.update_item(pk=pk, sk=sk, updates=item)
        except NotFoundError as error:
            raise NotFoundError(
                f"Mission {mission.mission_id} not found",
                resource_type="Mission",
                resource_id=mission.mission_id,
            ) from error
        return mission

    def update_status(
        self,
        mission_id: str,
        new_status: MissionStatus,
    ) -> Mission:
        """Set a mission's status without any transition check.

        Args:
            mission_id: Mission identifier.
            new_status: Target status.

        Returns:
            Updated mission.

        Raises:
            NotFoundError: If mission does not exist.
        """
        pk, sk = _mission_key(mission_id)
        try:
            item = self._db.update_item(
                pk=pk,
                sk=sk,
                updates={
                    "status": new_status,
                    "updated_at": format_timestamp(get_utc_now()),
                    "gsi1pk": f"{STATUS_KEY_PREFIX_MISSION}{new_status}",
                },
            )
        except NotFoundError as error:
            raise NotFoundError(
                f"Mission {mission_id} not found",
                resource_type="Mission",
                resource_id=mission_id,
            ) from error
        return Mission.from_dynamodb_item(item)

    def delete(self, mission_id: str) -> None:
        """Delete a mission by ID."""
        pk, sk = _mission_key(mission_id)
        self._db.delete_item(pk, sk)

    def list_for_drone(self, drone_id: str) -> list[Mission]:
        """List every mission of one drone, earliest start first."""
        items = self._db.query(
            pk=f"{PARTITION_KEY_DRONE}{drone_id}",
            sk_prefix=SORT_KEY_PREFIX_MISSION,
            index_name=INDEX_DRONE_SCHEDULE,
        )
        return _sort_by_start_time([Mission.from_dynamodb_item(item) for item in items])

    def find_overlapping(
        self,
        drone_id: str,
        start_time: datetime,
        end_time: datetime,
        *,
        exclude_mission_id: str | None = None,
    ) -> list[Mission]:
        """Find scheduled or in-progress missions of a drone that intersect a window.

        Uses the half-open test ``existing.start < end AND existing.end > start``.
        Only missions starting no later than ``end_time`` are read from the
        index; the strict comparison is applied afterwards.

        Args:
            drone_id: Drone whose schedule is checked.
            start_time: Requested window start.
            end_time: Requested window end.
            exclude_mission_id: Mission to ignore (the one being rescheduled).

        Returns:
            Conflicting missions, earliest start first.
        """
        items = self._db.query(
            pk=f"{PARTITION_KEY_DRONE}{drone_id}",
            sk_between=(
                SORT_KEY_PREFIX_MISSION,
                f"{SORT_KEY_PREFIX_MISSION}{format_timestamp(end_time)}",
            ),
            index_name=INDEX_DRONE_SCHEDULE,
        )
        candidates = (Mission.from_dynamodb_item(item) for item in items)
        return _sort_by_start_time([
            mission
            for mission in candidates
            if mission.status in BLOCKING_STATUSES
            and mission.mission_id != exclude_mission_id
            and mission.overlaps(start_time, end_time)
        ])

    def list_by_status(
        self,
        status: MissionStatus,
        *,
        start_from: datetime | None = None,
        start_to: datetime | None = None,
    ) -> list[Mission]:
        """List missions in one status, earliest start first.

        Args:
            status: Mission status to filter by.
            start_from: Optional inclusive lower bound on start_time.
            start_to: Optional inclusive upper bound on start_time.

        Returns:
            List of matching missions.
        """
        sk_between = None
        if start_from is not None or start_to is not None:
            low = format_timestamp(start_from) if start_from else "0000"
            high = format_timestamp(start_to) if start_to else "9999"
            sk_between = (low, high)

        items = self._db.query(
            pk=f"{STATUS_KEY_PREFIX_MISSION}{status}",
            sk_between=sk_between,
            index_name=INDEX_STATUS,
        )
        return _sort_by_start_time([Mission.from_dynamodb_item(item) for item in items])

    def list_all(
        self,
        *,
        status: MissionStatus | None = None,
        mission_type: MissionType | None = None,
        priority: MissionPriority | None = None,
    ) -> list[Mission]:
        """List missions with optional filters, earliest start first.

        Args:
            status: Only missions in this status.
            mission_type: Only missions of this type.
            priority: Only missions with this priority.

        Returns:
            List of missions.
        """
        statuses = [status] if status is not None else list(MissionStatus)
        missions: list[Mission] = []
        for current_status in statuses:
            missions.extend(self.list_by_status(current_status))

        return _sort_by_start_time([
            mission
            for mission in missions
            if (mission_type is None or mission.mission_type == mission_type)
            and (priority is None or mission.priority == priority)
        ])
