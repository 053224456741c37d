"""WebSocket connection registry and live push of new notifications."""

import json
import logging
from time import time
from typing import Any

from transit.models.notification import Notification

logger = logging.getLogger(__name__)


def store_connection(connection_id: str, user_id: str, dynamo_client: Any, connections_table: str) -> None:
    """Store WebSocket connection with 24-hour TTL."""
    ttl = int(time()) + 86400  # 24 hours from now
    dynamo_client.put_item(
        TableName=connections_table,
        Item={"connectionId": {"S": connection_id}, "userId": {"S": user_id}, "ttl": {"N": str(ttl)}},
    )


def delete_connection(connection_id: str, dynamo_client: Any, connections_table: str) -> None:
    """Delete WebSocket connection from DynamoDB."""
    dynamo_client.delete_item(
        TableName=connections_table,
        Key={"connectionId": {"S": connection_id}},
    )


def user_connections(user_id: str, dynamo_client: Any, connections_table: str) -> list[str]:
    connection_ids: list[str] = []
    last_key = None

    while True:
        scan_kwargs: dict[str, Any] = {
            "TableName": connections_table,
            "FilterExpression": "userId = :uid",
            "ExpressionAttributeValues": {":uid": {"S": user_id}},
        }
        if last_key:
            scan_kwargs["ExclusiveStartKey"] = last_key

        response = dynamo_client.scan(**scan_kwargs)
        connection_ids.extend(item["connectionId"]["S"] for item in response.get("Items", []))

        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            break

    return connection_ids


def push_notification(
    notification: Notification,
    dynamo_client: Any,
    apigw_client: Any,
    connections_table: str,
) -> int:
    """Send a notification to every open connection of its recipient.

    Returns the number of connections reached. Connections that API Gateway
    reports as gone are removed from the registry.
    """
    payload = json.dumps({"type": "notification", "notification": notification.to_api()}).encode()
    delivered = 0

    for connection_id in user_connections(notification.user_id, dynamo_client, connections_table):
        try:
            apigw_client.post_to_connection(ConnectionId=connection_id, Data=payload)
            delivered += 1
        except apigw_client.exceptions.GoneException:
            delete_connection(connection_id, dynamo_client, connections_table)
            logger.info("Cleaned stale connection %s", connection_id)
        except Exception:
            logger.exception("Error pushing notification %s to connection %s", notification.id, connection_id)

    return delivered
