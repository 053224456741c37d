"""DynamoDB-backed record store — one table per collection, hash key ``id``."""

import json
import logging
from collections.abc import Mapping
from decimal import Decimal
from functools import reduce
from typing import Any

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from transit.config import Config
from transit.errors import StaleRecordError, TransitError

from .interface import RecordStore

logger = logging.getLogger(__name__)


def _to_item(record: Mapping[str, Any]) -> dict[str, Any]:
    """DynamoDB rejects floats; round-trip through JSON to get Decimals."""
    return json.loads(json.dumps(record), parse_float=Decimal)


def _to_value(value: Any) -> Any:
    return json.loads(json.dumps(value), parse_float=Decimal)


def _from_item(item: Mapping[str, Any]) -> dict[str, Any]:
    return {key: _plain(value) for key, value in item.items()}


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


class DynamoStore(RecordStore):
    def __init__(self, config: Config, dynamo_resource: Any) -> None:
        self._config = config
        self._resource = dynamo_resource

    def _table(self, collection: str) -> Any:
        try:
            return self._resource.Table(self._config.table_for(collection))
        except KeyError as e:
            raise TransitError(f"Unknown collection: {collection}") from e

    def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        response = self._table(collection).get_item(Key={"id": record_id})
        item = response.get("Item")
        return _from_item(item) if item is not None else None

    def scan(self, collection: str, **filters: Any) -> list[dict[str, Any]]:
        table = self._table(collection)
        records: list[dict[str, Any]] = []
        last_key = None

        while True:
            scan_kwargs: dict[str, Any] = {}
            if filters:
                scan_kwargs["FilterExpression"] = reduce(
                    lambda acc, cond: acc & cond,
                    [Attr(key).eq(_to_value(value)) for key, value in filters.items()],
                )
            if last_key:
                scan_kwargs["ExclusiveStartKey"] = last_key

            response = table.scan(**scan_kwargs)
            records.extend(_from_item(item) for item in response.get("Items", []))

            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break

        return records

    def put(
        self,
        collection: str,
        record: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> None:
        put_kwargs: dict[str, Any] = {"Item": _to_item(record)}
        if expected is not None:
            condition = Attr("id").exists()
            for key, value in expected.items():
                condition = condition & Attr(key).eq(_to_value(value))
            put_kwargs["ConditionExpression"] = condition

        try:
            self._table(collection).put_item(**put_kwargs)
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                raise StaleRecordError(f"{collection}/{record['id']} changed since it was read") from e
            raise

    def delete(self, collection: str, record_id: str) -> bool:
        response = self._table(collection).delete_item(Key={"id": record_id}, ReturnValues="ALL_OLD")
        return "Attributes" in response
