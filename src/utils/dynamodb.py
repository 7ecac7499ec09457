"""DynamoDB data access utilities."""

from collections.abc import Callable
from decimal import Decimal
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

import boto3
from boto3.dynamodb.conditions import Attr, ConditionBase, Key
from botocore.exceptions import BotoCoreError, ClientError

from src.exceptions.client_errors import NotFoundError
from src.exceptions.server_errors import DatabaseError


def _convert_decimals(obj: Any) -> Any:
    """Convert Decimal values to int or float for JSON serialization."""
    if isinstance(obj, Decimal):
        if obj == int(obj):
            return int(obj)
        return float(obj)
    if isinstance(obj, dict):
        dict_obj = cast("dict[str, Any]", obj)
        return {k: _convert_decimals(v) for k, v in dict_obj.items()}
    if isinstance(obj, list):
        list_obj = cast("list[Any]", obj)
        return [_convert_decimals(item) for item in list_obj]
    return obj


def _sanitize_for_dynamodb(obj: Any) -> Any:
    """Convert floats to Decimal for DynamoDB storage."""
    if isinstance(obj, float):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        dict_obj = cast("dict[str, Any]", obj)
        return {k: _sanitize_for_dynamodb(v) for k, v in dict_obj.items()}
    if isinstance(obj, list):
        list_obj = cast("list[Any]", obj)
        return [_sanitize_for_dynamodb(item) for item in list_obj]
    return obj


P = ParamSpec("P")
T = TypeVar("T")


def _wrap_storage_errors(func: Callable[P, T]) -> Callable[P, T]:
    """Re-raise botocore failures as DatabaseError."""

    @wraps(func)
    def call_table(*args: P.args, **kwargs: P.kwargs) -> T:
        try:
            return func(*args, **kwargs)
        except (BotoCoreError, ClientError) as error:
            raise DatabaseError(
                f"DynamoDB {func.__name__} failed: {error}",
                operation=func.__name__,
            ) from error

    return call_table


def _build_index_key_names(index_name: str | None) -> tuple[str, str]:
    """Return the partition and sort key attribute names for a table or GSI."""
    if index_name is None:
        return "pk", "sk"
    if "gsi1" in index_name:
        return "gsi1pk", "gsi1sk"
    return "gsi2pk", "gsi2sk"


class DynamoDBClient:
    """Wrapper around DynamoDB table operations."""

    def __init__(self, table_name: str) -> None:
        """Initialize the DynamoDB client.

        Args:
            table_name: DynamoDB table name.
        """
        dynamodb = boto3.resource("dynamodb")  # type: ignore[call-overload]
        self._table = dynamodb.Table(table_name)

    @_wrap_storage_errors
    def put_item(self, item: dict[str, Any]) -> None:
        """Write an item to the table.

        Args:
            item: Item to write.
        """
        self._table.put_item(Item=_sanitize_for_dynamodb(item))

    @_wrap_storage_errors
    def find_item(self, pk: str, sk: str) -> dict[str, Any] | None:
        """Get a single item by primary key, or None if it does not exist.

        Reads are strongly consistent.
        """
        response = self._table.get_item(Key={"pk": pk, "sk": sk}, ConsistentRead=True)
        item = response.get("Item")
        if not item:
            return None
        return _convert_decimals(item)

    def get_item(self, pk: str, sk: str) -> dict[str, Any]:
        """Get a single item by primary key.

        Args:
            pk: Partition key value.
            sk: Sort key value.

        Returns:
            Item data.

        Raises:
            NotFoundError: If item does not exist.
        """
        item = self.find_item(pk, sk)
        if item is None:
            raise NotFoundError(
                f"Item not found: {pk}/{sk}",
                resource_type="item",
                resource_id=f"{pk}/{sk}",
            )
        return item

    @_wrap_storage_errors
    def query(
        self,
        pk: str,
        sk_prefix: str | None = None,
        *,
        sk_between: tuple[str, str] | None = None,
        index_name: str | None = None,
        limit: int | None = None,
        scan_forward: bool = True,
    ) -> list[dict[str, Any]]:
        """Query items by partition key and an optional sort key condition.

        Pages through results until ``limit`` items are collected or the
        partition is exhausted.

        Args:
            pk: Partition key value.
            sk_prefix: Optional sort key prefix for begins_with.
            sk_between: Optional inclusive (low, high) sort key range.
            index_name: Optional GSI name to query.
            limit: Maximum number of items to return.
            scan_forward: Sort ascending if True, descending if False.

        Returns:
            List of matching items.
        """
        pk_name, sk_name = _build_index_key_names(index_name)
        key_condition = Key(pk_name).eq(pk)
        if sk_between is not None:
            key_condition = key_condition & Key(sk_name).between(*sk_between)
        elif sk_prefix:
            key_condition = key_condition & Key(sk_name).begins_with(sk_prefix)

        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        else:
            kwargs["ConsistentRead"] = True
        if limit:
            kwargs["Limit"] = limit

        items: list[dict[str, Any]] = []
        while True:
            response = self._table.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key or (limit and len(items) >= limit):
                break
            kwargs["ExclusiveStartKey"] = last_key

        if limit:
            items = items[:limit]
        return [_convert_decimals(item) for item in items]

    @_wrap_storage_errors
    def scan(self, filter_expression: ConditionBase) -> list[dict[str, Any]]:
        """Scan the whole table for items matching a filter.

        Args:
            filter_expression: boto3 condition built from ``Attr``.

        Returns:
            List of matching items.
        """
        kwargs: dict[str, Any] = {"FilterExpression": filter_expression}
        items: list[dict[str, Any]] = []
        while True:
            response = self._table.scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key
        return [_convert_decimals(item) for item in items]

    @_wrap_storage_errors
    def update_item(
        self,
        pk: str,
        sk: str,
        updates: dict[str, Any],
    ) -> dict[str, Any]:
        """Update specific attributes of an existing item.

        Args:
            pk: Partition key value.
            sk: Sort key value.
            updates: Dictionary of attribute names to new values.

        Returns:
            Updated item attributes.

        Raises:
            NotFoundError: If the item does not exist.
        """
        sanitized: dict[str, Any] = _sanitize_for_dynamodb(updates)
        update_parts: list[str] = []
        expression_values: dict[str, Any] = {}
        expression_names: dict[str, str] = {}

        for index, (key, value) in enumerate(sanitized.items()):
            placeholder_value = f":val{index}"
            placeholder_name = f"#attr{index}"
            update_parts.append(f"{placeholder_name} = {placeholder_value}")
            expression_values[placeholder_value] = value
            expression_names[placeholder_name] = key

        update_expression = "SET " + ", ".join(update_parts)

        try:
            response = self._table.update_item(
                Key={"pk": pk, "sk": sk},
                UpdateExpression=update_expression,
                ConditionExpression=Attr("pk").exists(),
                ExpressionAttributeValues=expression_values,
                ExpressionAttributeNames=expression_names,
                ReturnValues="ALL_NEW",
            )
        except ClientError as error:
            if error.response["Error"]["Code"] != "ConditionalCheckFailedException":
                raise
            raise NotFoundError(
                f"Item not found: {pk}/{sk}",
                resource_type="item",
                resource_id=f"{pk}/{sk}",
            ) from error
        return _convert_decimals(response.get("Attributes", {}))

    @_wrap_storage_errors
    def delete_item(self, pk: str, sk: str) -> None:
        """Delete an item by primary key.

        Args:
            pk: Partition key value.
            sk: Sort key value.
        """
        self._table.delete_item(Key={"pk": pk, "sk": sk})

    @_wrap_storage_errors
    def delete_items(self, keys: list[tuple[str, str]]) -> int:
        """Delete many items by primary key in batches.

        Args:
            keys: (pk, sk) pairs to delete.

        Returns:
            Number of delete requests issued.
        """
        with self._table.batch_writer() as batch:
            for pk, sk in keys:
                batch.delete_item(Key={"pk": pk, "sk": sk})
        return len(keys)
