"""GET, PATCH and DELETE /notifications/{id}."""

from typing import Any

from transit.api import api_handler, json_response, parse_body, path_param
from transit.errors import ErrorCode, ValidationError
from transit.models.notification import ReadStateUpdate
from transit.services.notifications import delete_notification, get_notification, set_read
from transit.store import get_store


def _method(event: dict[str, Any]) -> str:
    http = (event.get("requestContext") or {}).get("http") or {}
    return (event.get("httpMethod") or http.get("method") or "GET").upper()


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    notification_id = path_param(event, "id")
    store = get_store()
    method = _method(event)

    if method == "GET":
        return json_response(200, get_notification(store, notification_id).to_api())
    if method == "PATCH":
        update = parse_body(event, ReadStateUpdate)
        return json_response(200, set_read(store, notification_id, update.read).to_api())
    if method == "DELETE":
        return json_response(200, delete_notification(store, notification_id).to_api())

    raise ValidationError(f"Unsupported method {method}", code=ErrorCode.INVALID_REQUEST)
