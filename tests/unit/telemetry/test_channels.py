"""Tests for telemetry channels and subscribers."""

import logging
import threading

import pytest

from src.exceptions.server_errors import ServiceUnavailableError
from src.telemetry.channels import ChannelRegistry, QueueSubscriber
from src.telemetry.models import TelemetryEvent, TelemetrySample


def _make_event(drone_id: str = "d-001", battery: float = 80) -> TelemetryEvent:
    sample = TelemetrySample(drone_id=drone_id, latitude=40.0, longitude=-74.0, battery=battery)
    return TelemetryEvent(drone_id=drone_id, sample=sample)


class _FailingSubscriber:
    def deliver(self, event: TelemetryEvent) -> None:
        raise ConnectionError("socket closed")


class TestMembership:
    def test_join_and_count(self):
        channels = ChannelRegistry()
        channels.join(QueueSubscriber("a"), "d-001")
        channels.join(QueueSubscriber("b"), "d-001")
        assert channels.get_subscriber_count("d-001") == 2
        assert channels.get_subscriber_count("d-002") == 0

    def test_join_is_idempotent(self):
        channels = ChannelRegistry()
        subscriber = QueueSubscriber()
        channels.join(subscriber, "d-001")
        channels.join(subscriber, "d-001")
        assert channels.get_subscriber_count("d-001") == 1

    def test_leave(self):
        channels = ChannelRegistry()
        subscriber = QueueSubscriber()
        channels.join(subscriber, "d-001")
        channels.leave(subscriber, "d-001")
        channels.leave(subscriber, "d-001")
        assert channels.get_subscriber_count("d-001") == 0

    def test_leave_all(self):
        channels = ChannelRegistry()
        subscriber = QueueSubscriber()
        other = QueueSubscriber()
        channels.join(subscriber, "d-001")
        channels.join(subscriber, "d-002")
        channels.join(other, "d-002")
        channels.leave_all(subscriber)
        assert channels.get_subscriber_count("d-001") == 0
        assert channels.get_subscriber_count("d-002") == 1


class TestPublish:
    def test_only_channel_members_receive(self):
        channels = ChannelRegistry()
        watcher = QueueSubscriber()
        bystander = QueueSubscriber()
        channels.join(watcher, "d-001")
        channels.join(bystander, "d-002")
        assert channels.publish("d-001", _make_event()) == 1
        assert len(watcher.drain()) == 1
        assert bystander.drain() == []

    def test_no_subscribers(self):
        assert ChannelRegistry().publish("d-001", _make_event()) == 0

    def test_order_preserved_per_subscriber(self):
        channels = ChannelRegistry()
        subscriber = QueueSubscriber()
        channels.join(subscriber, "d-001")
        for battery in (90, 80, 70):
            channels.publish("d-001", _make_event(battery=battery))
        assert [event.sample.battery for event in subscriber.drain()] == [90, 80, 70]

    def test_failing_subscriber_isolated(self, caplog):
        caplog.set_level(logging.WARNING)
        channels = ChannelRegistry()
        healthy = QueueSubscriber()
        channels.join(_FailingSubscriber(), "d-001")
        channels.join(healthy, "d-001")
        assert channels.publish("d-001", _make_event()) == 1
        assert len(healthy.drain()) == 1
        assert "Telemetry delivery failed" in caplog.text

    def test_left_subscriber_stops_receiving(self):
        channels = ChannelRegistry()
        subscriber = QueueSubscriber()
        channels.join(subscriber, "d-001")
        channels.leave(subscriber, "d-001")
        channels.publish("d-001", _make_event())
        assert subscriber.drain() == []

    def test_concurrent_publishers(self):
        channels = ChannelRegistry()
        subscriber = QueueSubscriber(max_size=1000)
        channels.join(subscriber, "d-001")

        def publish_many() -> None:
            for _ in range(50):
                channels.publish("d-001", _make_event())

        threads = [threading.Thread(target=publish_many) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(subscriber.drain()) == 200


class TestClose:
    def test_close_drops_channels(self):
        channels = ChannelRegistry()
        subscriber = QueueSubscriber()
        channels.join(subscriber, "d-001")
        channels.close()
        assert channels.closed
        assert channels.publish("d-001", _make_event()) == 0
        assert channels.get_subscriber_count("d-001") == 0

    def test_join_after_close_rejected(self):
        channels = ChannelRegistry()
        channels.close()
        with pytest.raises(ServiceUnavailableError):
            channels.join(QueueSubscriber(), "d-001")


class TestQueueSubscriber:
    def test_drops_when_full(self):
        subscriber = QueueSubscriber("slow", max_size=2)
        for _ in range(5):
            subscriber.deliver(_make_event())
        assert subscriber.dropped_count == 3
        assert len(subscriber.drain()) == 2

    def test_receive_timeout(self):
        assert QueueSubscriber().receive(timeout=0.01) is None

    def test_receive_returns_event(self):
        subscriber = QueueSubscriber()
        event = _make_event()
        subscriber.deliver(event)
        assert subscriber.receive(timeout=1) == event

    def test_repr(self):
        assert repr(QueueSubscriber("dashboard")) == "QueueSubscriber(name='dashboard')"
