"""GET /notifications?unread=true: the acting user's notifications, newest first."""

from typing import Any

from transit.api import acting_user_id, api_handler, json_response, query_params
from transit.services.notifications import list_notifications
from transit.store import get_store


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    user_id = acting_user_id(event)
    unread_only = query_params(event).get("unread", "").lower() == "true"

    notifications = list_notifications(get_store(), user_id, unread_only=unread_only)
    return json_response(200, [n.to_api() for n in notifications])
