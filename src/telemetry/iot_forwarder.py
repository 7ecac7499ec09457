"""Republishes drone telemetry events to AWS IoT Core MQTT topics."""

import json
import logging
import queue
import threading
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from src.constants import (
    DEFAULT_SUBSCRIBER_QUEUE_SIZE,
    MQTT_QOS,
    MQTT_TELEMETRY_TOPIC,
    MQTT_TOPIC_PREFIX,
)
from src.exceptions.server_errors import ExternalServiceError
from src.telemetry.models import TelemetryEvent
from src.utils.timestamps import format_timestamp, get_utc_now

logger = logging.getLogger(__name__)


def build_telemetry_topic(drone_id: str) -> str:
    """MQTT topic carrying one drone's telemetry stream."""
    return f"{MQTT_TOPIC_PREFIX}/{drone_id}/{MQTT_TELEMETRY_TOPIC}"


class IotTopicForwarder:
    """Channel subscriber that forwards events to ``drone-fleet/{drone_id}/telemetry``.

    ``deliver`` only buffers the event; a background worker makes the IoT
    Core calls, so a slow endpoint never holds up ingestion. When the buffer
    is full new events are dropped and counted.
    """

    def __init__(self, endpoint: str = "", *, max_size: int = DEFAULT_SUBSCRIBER_QUEUE_SIZE) -> None:
        """Initialize the forwarder and start its worker.

        Args:
            endpoint: AWS IoT Core data endpoint host; empty uses the default.
            max_size: Maximum number of events waiting to be published.
        """
        self._client = boto3.client(  # type: ignore[call-overload]
            "iot-data",
            endpoint_url=f"https://{endpoint}" if endpoint else None,
        )
        # None tells the worker to stop
        self._queue: queue.Queue[TelemetryEvent | None] = queue.Queue(maxsize=max_size)
        self._pending_changed = threading.Condition()
        self._pending = 0
        self._dropped_count = 0
        self._failed_count = 0
        self._worker = threading.Thread(target=self._forward_events, name="iot-forwarder", daemon=True)
        self._worker.start()

    @property
    def dropped_count(self) -> int:
        """Number of events discarded because the buffer was full."""
        with self._pending_changed:
            return self._dropped_count

    @property
    def failed_count(self) -> int:
        """Number of events IoT Core refused."""
        with self._pending_changed:
            return self._failed_count

    def deliver(self, event: TelemetryEvent) -> None:
        """Buffer an event for publication without blocking."""
        with self._pending_changed:
            self._pending += 1
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            with self._pending_changed:
                self._pending -= 1
                self._dropped_count += 1
                self._pending_changed.notify_all()
            logger.warning("IoT forwarding buffer full, event dropped", extra={"drone_id": event.drone_id})

    def publish(self, event: TelemetryEvent) -> None:
        """Publish an event to the drone's telemetry topic now.

        Raises:
            ExternalServiceError: If the publish call fails.
        """
        topic = build_telemetry_topic(event.drone_id)
        envelope: dict[str, Any] = {
            "version": "1.0",
            "timestamp": format_timestamp(get_utc_now()),
            "source": "cloud",
            **event.to_payload(),
        }
        try:
            self._client.publish(
                topic=topic,
                qos=MQTT_QOS,
                payload=json.dumps(envelope),
            )
        except (BotoCoreError, ClientError) as error:
            raise ExternalServiceError(
                f"Failed to publish to {topic}: {error}",
                service_name="iot-core",
            ) from error

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until every buffered event has been published or has failed.

        Args:
            timeout: Seconds to wait; None waits forever.

        Returns:
            True if the buffer emptied in time.
        """
        with self._pending_changed:
            return self._pending_changed.wait_for(lambda: self._pending == 0, timeout)

    def close(self, timeout: float | None = None) -> None:
        """Publish what is buffered, then stop the worker."""
        self._queue.put(None)
        self._worker.join(timeout)

    def _forward_events(self) -> None:
        while True:
            event = self._queue.get()
            if event is None:
                return
            try:
                self.publish(event)
            except ExternalServiceError as error:
                logger.warning(
                    "IoT forwarding failed",
                    extra={"drone_id": event.drone_id, **error.to_log_fields()},
                )
                with self._pending_changed:
                    self._failed_count += 1
            finally:
                with self._pending_changed:
                    self._pending -= 1
                    self._pending_changed.notify_all()
