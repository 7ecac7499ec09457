"""Tests for DynamoDB client utilities."""

import pytest
from boto3.dynamodb.conditions import Attr

from src.constants import INDEX_DRONE_SCHEDULE, INDEX_STATUS
from src.exceptions.client_errors import NotFoundError
from src.exceptions.server_errors import DatabaseError
from src.utils.dynamodb import DynamoDBClient


class TestDynamoDBClientPutAndGet:
    """Tests for put_item, find_item and get_item."""

    def test_put_and_get_item(self, db_client) -> None:
        db_client.put_item({"pk": "TEST#1", "sk": "METADATA", "name": "test item", "count": 42})
        item = db_client.get_item("TEST#1", "METADATA")
        assert item["name"] == "test item"
        assert item["count"] == 42

    def test_get_nonexistent_item_raises(self, db_client) -> None:
        with pytest.raises(NotFoundError):
            db_client.get_item("MISSING#1", "METADATA")

    def test_find_nonexistent_item_returns_none(self, db_client) -> None:
        assert db_client.find_item("MISSING#1", "METADATA") is None

    def test_float_to_decimal_conversion(self, db_client) -> None:
        db_client.put_item({
            "pk": "TEST#float",
            "sk": "METADATA",
            "latitude": 40.7128,
            "nested": {"longitude": -74.006},
        })
        item = db_client.get_item("TEST#float", "METADATA")
        assert isinstance(item["latitude"], float)
        assert item["latitude"] == pytest.approx(40.7128)
        assert item["nested"]["longitude"] == pytest.approx(-74.006)


class TestDynamoDBClientQuery:
    """Tests for query operations."""

    def test_query_with_sk_prefix(self, db_client) -> None:
        db_client.put_item({"pk": "DRONE#1", "sk": "METADATA", "val": "drone"})
        db_client.put_item({"pk": "DRONE#1", "sk": "TELEMETRY#2026-01-01", "val": "t1"})
        items = db_client.query("DRONE#1", "TELEMETRY#")
        assert [item["val"] for item in items] == ["t1"]

    def test_query_between(self, db_client) -> None:
        for day in ("01", "02", "03", "04"):
            db_client.put_item({"pk": "DRONE#1", "sk": f"TELEMETRY#2026-01-{day}"})
        items = db_client.query(
            "DRONE#1",
            sk_between=("TELEMETRY#2026-01-02", "TELEMETRY#2026-01-03"),
        )
        assert [item["sk"] for item in items] == ["TELEMETRY#2026-01-02", "TELEMETRY#2026-01-03"]

    def test_query_with_limit_and_descending(self, db_client) -> None:
        for index in range(5):
            db_client.put_item({"pk": "LIM#1", "sk": f"ITEM#{index:03d}"})
        items = db_client.query("LIM#1", limit=2, scan_forward=False)
        assert [item["sk"] for item in items] == ["ITEM#004", "ITEM#003"]

    def test_query_status_index(self, db_client) -> None:
        db_client.put_item({
            "pk": "MISSION#1",
            "sk": "METADATA",
            "gsi1pk": "MISSION_STATUS#scheduled",
            "gsi1sk": "2026-01-01",
        })
        db_client.put_item({
            "pk": "MISSION#2",
            "sk": "METADATA",
            "gsi1pk": "MISSION_STATUS#scheduled",
            "gsi1sk": "2026-01-02",
        })
        items = db_client.query("MISSION_STATUS#scheduled", index_name=INDEX_STATUS, scan_forward=False)
        assert [item["pk"] for item in items] == ["MISSION#2", "MISSION#1"]

    def test_query_schedule_index(self, db_client) -> None:
        db_client.put_item({
            "pk": "MISSION#1",
            "sk": "METADATA",
            "gsi2pk": "DRONE#d-001",
            "gsi2sk": "MISSION#2026-01-01",
        })
        items = db_client.query("DRONE#d-001", "MISSION#", index_name=INDEX_DRONE_SCHEDULE)
        assert [item["pk"] for item in items] == ["MISSION#1"]


class TestDynamoDBClientScan:
    def test_scan_with_filter(self, db_client) -> None:
        db_client.put_item({"pk": "DRONE#1", "sk": "TELEMETRY#a", "timestamp": "2026-01-01"})
        db_client.put_item({"pk": "DRONE#1", "sk": "TELEMETRY#b", "timestamp": "2026-02-01"})
        db_client.put_item({"pk": "DRONE#1", "sk": "METADATA"})
        items = db_client.scan(
            Attr("sk").begins_with("TELEMETRY#") & Attr("timestamp").lt("2026-01-15")
        )
        assert [item["sk"] for item in items] == ["TELEMETRY#a"]


class TestDynamoDBClientUpdate:
    """Tests for update_item."""

    def test_update_attributes(self, db_client) -> None:
        db_client.put_item({"pk": "UPD#1", "sk": "METADATA", "status": "idle", "count": 0})
        result = db_client.update_item("UPD#1", "METADATA", {"status": "in-mission", "count": 1})
        assert result["status"] == "in-mission"
        assert result["count"] == 1
        assert db_client.get_item("UPD#1", "METADATA")["status"] == "in-mission"

    def test_update_does_not_touch_key_attributes(self, db_client) -> None:
        # The existence condition on pk shares the request's name map
        db_client.put_item({"pk": "UPD#2", "sk": "METADATA", "name": "Alpha"})
        result = db_client.update_item("UPD#2", "METADATA", {"name": "Bravo"})
        assert result == {"pk": "UPD#2", "sk": "METADATA", "name": "Bravo"}
        assert db_client.get_item("UPD#2", "METADATA")["name"] == "Bravo"

    def test_update_missing_item_raises_not_found(self, db_client) -> None:
        with pytest.raises(NotFoundError):
            db_client.update_item("UPD#missing", "METADATA", {"status": "idle"})
        assert db_client.find_item("UPD#missing", "METADATA") is None


class TestDynamoDBClientDelete:
    """Tests for delete_item and delete_items."""

    def test_delete_item(self, db_client) -> None:
        db_client.put_item({"pk": "DEL#1", "sk": "METADATA"})
        db_client.delete_item("DEL#1", "METADATA")
        assert db_client.find_item("DEL#1", "METADATA") is None

    def test_delete_items_in_batch(self, db_client) -> None:
        keys = [("DEL#2", f"ITEM#{index:03d}") for index in range(30)]
        for pk, sk in keys:
            db_client.put_item({"pk": pk, "sk": sk})
        assert db_client.delete_items(keys) == 30
        assert db_client.query("DEL#2") == []


class TestStorageErrorWrapping:
    def test_missing_table_raises_database_error(self, db_client) -> None:
        client = DynamoDBClient("no-such-table")
        with pytest.raises(DatabaseError) as exc_info:
            client.put_item({"pk": "X#1", "sk": "METADATA"})
        assert exc_info.value.context["operation"] == "put_item"
