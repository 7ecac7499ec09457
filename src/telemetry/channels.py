"""Per-drone telemetry channels and subscribers.

A ``ChannelRegistry`` maps drone ids to the subscribers that want that
drone's telemetry. It is an ordinary object created at process start and
closed at shutdown; nothing about it is global.
"""

import logging
import queue
import threading
from typing import Protocol

from src.constants import DEFAULT_SUBSCRIBER_QUEUE_SIZE
from src.exceptions.server_errors import ServiceUnavailableError
from src.telemetry.models import TelemetryEvent

logger = logging.getLogger(__name__)


class TelemetrySubscriber(Protocol):
    """Anything that can receive telemetry events."""

    def deliver(self, event: TelemetryEvent) -> None:
        """Accept one event. Must not block for long."""
        ...


class ChannelRegistry:
    """Subscriber sets keyed by drone id.

    Membership changes and publishes are thread-safe. Publishing delivers
    outside the registry lock, so a slow subscriber never blocks joins or
    publishes on other channels.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # dict keys keep subscription order and make joins idempotent
        self._channels: dict[str, dict[TelemetrySubscriber, None]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        """True once ``close`` has been called."""
        return self._closed

    def join(self, subscriber: TelemetrySubscriber, drone_id: str) -> None:
        """Add a subscriber to a drone's channel. Joining twice is a no-op.

        Raises:
            ServiceUnavailableError: If the registry has been closed.
        """
        with self._lock:
            if self._closed:
                raise ServiceUnavailableError("Telemetry channels are shut down")
            self._channels.setdefault(drone_id, {})[subscriber] = None
        logger.debug("Subscriber joined channel", extra={"drone_id": drone_id})

    def leave(self, subscriber: TelemetrySubscriber, drone_id: str) -> None:
        """Remove a subscriber from a drone's channel. Leaving twice is a no-op."""
        with self._lock:
            members = self._channels.get(drone_id)
            if members is None:
                return
            members.pop(subscriber, None)
            if not members:
                del self._channels[drone_id]

    def leave_all(self, subscriber: TelemetrySubscriber) -> None:
        """Remove a subscriber from every channel it belongs to."""
        with self._lock:
            for drone_id in list(self._channels):
                members = self._channels[drone_id]
                members.pop(subscriber, None)
                if not members:
                    del self._channels[drone_id]

    def get_subscriber_count(self, drone_id: str) -> int:
        """Number of subscribers currently on a drone's channel."""
        with self._lock:
            return len(self._channels.get(drone_id, {}))

    def publish(self, drone_id: str, event: TelemetryEvent) -> int:
        """Deliver an event to every subscriber of a drone's channel.

        A subscriber that raises is logged and skipped; the failure never
        propagates to the caller.

        Args:
            drone_id: Channel to publish on.
            event: Event to deliver.

        Returns:
            Number of subscribers that accepted the event.
        """
        with self._lock:
            subscribers = list(self._channels.get(drone_id, {}))

        delivered = 0
        for subscriber in subscribers:
            try:
                subscriber.deliver(event)
            except Exception:
                logger.warning(
                    "Telemetry delivery failed",
                    exc_info=True,
                    extra={"drone_id": drone_id, "subscriber": type(subscriber).__name__},
                )
            else:
                delivered += 1
        return delivered

    def close(self) -> None:
        """Drop every channel. Later joins fail and publishes reach nobody."""
        with self._lock:
            self._closed = True
            self._channels.clear()
        logger.info("Telemetry channels closed")


class QueueSubscriber:
    """Buffers events in a bounded queue for a consumer to read.

    When the buffer is full new events are dropped and counted, so the
    publisher never waits on a slow consumer.
    """

    def __init__(self, name: str = "", *, max_size: int = DEFAULT_SUBSCRIBER_QUEUE_SIZE) -> None:
        """Initialize the subscriber.

        Args:
            name: Label used in logs.
            max_size: Maximum number of buffered events.
        """
        self.name = name
        self._queue: queue.Queue[TelemetryEvent] = queue.Queue(maxsize=max_size)
        self._dropped_lock = threading.Lock()
        self._dropped_count = 0

    @property
    def dropped_count(self) -> int:
        """Number of events discarded because the buffer was full."""
        with self._dropped_lock:
            return self._dropped_count

    def deliver(self, event: TelemetryEvent) -> None:
        """Buffer an event without blocking."""
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            with self._dropped_lock:
                self._dropped_count += 1
            logger.warning(
                "Subscriber buffer full, event dropped",
                extra={"subscriber": self.name, "drone_id": event.drone_id},
            )

    def receive(self, timeout: float | None = None) -> TelemetryEvent | None:
        """Wait for the next event.

        Args:
            timeout: Seconds to wait; None waits forever.

        Returns:
            The next event, or None if none arrived in time.
        """
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> list[TelemetryEvent]:
        """Return every buffered event without waiting."""
        events: list[TelemetryEvent] = []
        while True:
            try:
                events.append(self._queue.get_nowait())
            except queue.Empty:
                return events

    def __repr__(self) -> str:
        return f"QueueSubscriber(name={self.name!r})"
