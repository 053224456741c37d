"""WebSocket $connect / $disconnect: keeps the registry used for notification push."""

import logging
from typing import Any

from transit.clients import get_dynamo_client
from transit.config import get_config
from transit.services.connection import delete_connection, store_connection

logger = logging.getLogger(__name__)


def handler(event: dict[str, Any], context: object) -> dict[str, int]:
    request_context = event["requestContext"]
    route_key = request_context.get("routeKey")
    connection_id = request_context["connectionId"]
    config = get_config()

    if route_key == "$connect":
        user_id = (request_context.get("authorizer") or {}).get("userId")
        if not user_id:
            logger.warning("Rejecting connection %s without a user", connection_id)
            return {"statusCode": 401}
        store_connection(connection_id, user_id, get_dynamo_client(), config.connections_table)
        return {"statusCode": 200}

    if route_key == "$disconnect":
        # API Gateway does not retry $disconnect, so failures are only logged.
        try:
            delete_connection(connection_id, get_dynamo_client(), config.connections_table)
            logger.info("Deleted connection %s", connection_id)
        except Exception:
            logger.exception("Failed to delete connection %s", connection_id)
        return {"statusCode": 200}

    logger.warning("Unexpected route %s on connection %s", route_key, connection_id)
    return {"statusCode": 400}
