"""Shared test fixtures."""

from collections.abc import Iterator
from datetime import UTC, datetime
from typing import Any

import boto3
import pytest
from moto import mock_aws

from src.config import get_settings
from src.constants import INDEX_DRONE_SCHEDULE, INDEX_STATUS
from src.fleet.models import Drone
from src.fleet.repository import DroneRepository
from src.logging.context import clear_context
from src.utils.dynamodb import DynamoDBClient

TABLE_NAME = "test-table"


@pytest.fixture(autouse=True)
def _clear_environment(monkeypatch):
    """Clear environment variables that affect settings."""
    env_vars_to_clear = [
        "SERVICE_NAME",
        "ENVIRONMENT",
        "AWS_REGION",
        "TABLE_NAME",
        "IOT_ENDPOINT",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "UPCOMING_WINDOW_HOURS",
        "STATS_WINDOW_HOURS",
        "TELEMETRY_RETENTION_DAYS",
        "TELEMETRY_HISTORY_LIMIT",
        "SUBSCRIBER_QUEUE_SIZE",
        "ENABLE_IOT_FORWARDING",
    ]
    for var in env_vars_to_clear:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    get_settings.cache_clear()
    clear_context()
    yield
    get_settings.cache_clear()
    clear_context()


def _create_table() -> None:
    dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
    table = dynamodb.create_table(
        TableName=TABLE_NAME,
        KeySchema=[
            {"AttributeName": "pk", "KeyType": "HASH"},
            {"AttributeName": "sk", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "pk", "AttributeType": "S"},
            {"AttributeName": "sk", "AttributeType": "S"},
            {"AttributeName": "gsi1pk", "AttributeType": "S"},
            {"AttributeName": "gsi1sk", "AttributeType": "S"},
            {"AttributeName": "gsi2pk", "AttributeType": "S"},
            {"AttributeName": "gsi2sk", "AttributeType": "S"},
        ],
        GlobalSecondaryIndexes=[
            {
                "IndexName": INDEX_STATUS,
                "KeySchema": [
                    {"AttributeName": "gsi1pk", "KeyType": "HASH"},
                    {"AttributeName": "gsi1sk", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
            {
                "IndexName": INDEX_DRONE_SCHEDULE,
                "KeySchema": [
                    {"AttributeName": "gsi2pk", "KeyType": "HASH"},
                    {"AttributeName": "gsi2sk", "KeyType": "RANGE"},
                ],
                "Projection": {"ProjectionType": "ALL"},
            },
        ],
        BillingMode="PAY_PER_REQUEST",
    )
    table.wait_until_exists()


@pytest.fixture()
def db_client(monkeypatch) -> Iterator[DynamoDBClient]:
    """DynamoDB client over a mocked single table."""
    with mock_aws():
        monkeypatch.setenv("TABLE_NAME", TABLE_NAME)
        _create_table()
        yield DynamoDBClient(TABLE_NAME)


@pytest.fixture()
def drone_repository(db_client) -> DroneRepository:
    """Drone repository with one idle drone, ``d-001``, registered."""
    repository = DroneRepository(db_client)
    repository.create(Drone(drone_id="d-001", name="Alpha", model="DJI Mavic 3"))
    return repository


class FixedClock:
    """Settable clock for tests that depend on the current time."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def clock() -> FixedClock:
    """Clock frozen at 2026-03-01 12:00 UTC."""
    return FixedClock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture()
def coordinates() -> dict[str, Any]:
    """Route payload used by mission requests."""
    return {
        "start": {"latitude": 40.7128, "longitude": -74.006},
        "end": {"latitude": 40.758, "longitude": -73.9855},
    }
