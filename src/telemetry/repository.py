"""Append-only telemetry storage."""

from datetime import datetime

from boto3.dynamodb.conditions import Attr

from src.constants import PARTITION_KEY_DRONE, SORT_KEY_PREFIX_TELEMETRY
from src.telemetry.models import TelemetrySample, build_telemetry_sort_key
from src.utils.dynamodb import DynamoDBClient
from src.utils.timestamps import format_timestamp

# Sorts after every "#<telemetry_id>" suffix sharing the same timestamp
_SORT_KEY_UPPER_SUFFIX = "~"


class TelemetryRepository:
    """Stores telemetry samples under their drone's partition.

    Samples are never updated in place; the only mutation is age-based
    deletion.
    """

    def __init__(self, dynamodb_client: DynamoDBClient) -> None:
        """Initialize the telemetry repository.

        Args:
            dynamodb_client: DynamoDB client instance.
        """
        self._db = dynamodb_client

    def append(self, sample: TelemetrySample) -> TelemetrySample:
        """Persist a new sample."""
        self._db.put_item(sample.to_dynamodb_item())
        return sample

    def list_recent(self, drone_id: str, *, limit: int) -> list[TelemetrySample]:
        """Return a drone's newest samples first.

        Args:
            drone_id: Drone identifier.
            limit: Maximum number of samples.

        Returns:
            Samples ordered newest to oldest.
        """
        items = self._db.query(
            pk=f"{PARTITION_KEY_DRONE}{drone_id}",
            sk_prefix=SORT_KEY_PREFIX_TELEMETRY,
            limit=limit,
            scan_forward=False,
        )
        return [TelemetrySample.from_dynamodb_item(item) for item in items]

    def list_between(
        self,
        drone_id: str,
        start_time: datetime,
        end_time: datetime,
    ) -> list[TelemetrySample]:
        """Return a drone's samples with start_time <= timestamp <= end_time, oldest first."""
        items = self._db.query(
            pk=f"{PARTITION_KEY_DRONE}{drone_id}",
            sk_between=(
                build_telemetry_sort_key(start_time),
                build_telemetry_sort_key(end_time) + _SORT_KEY_UPPER_SUFFIX,
            ),
        )
        return [TelemetrySample.from_dynamodb_item(item) for item in items]

    def list_since(self, drone_id: str, start_time: datetime) -> list[TelemetrySample]:
        """Return a drone's samples with timestamp >= start_time, oldest first."""
        items = self._db.query(
            pk=f"{PARTITION_KEY_DRONE}{drone_id}",
            sk_between=(
                build_telemetry_sort_key(start_time),
                SORT_KEY_PREFIX_TELEMETRY + _SORT_KEY_UPPER_SUFFIX,
            ),
        )
        return [TelemetrySample.from_dynamodb_item(item) for item in items]

    def delete_older_than(self, cutoff: datetime) -> int:
        """Delete every sample, for any drone, with timestamp < cutoff.

        Args:
            cutoff: Samples strictly older than this are removed.

        Returns:
            Number of samples deleted.
        """
        stale_items = self._db.scan(
            Attr("sk").begins_with(SORT_KEY_PREFIX_TELEMETRY)
            & Attr("timestamp").lt(format_timestamp(cutoff))
        )
        return self._db.delete_items([(item["pk"], item["sk"]) for item in stale_items])
