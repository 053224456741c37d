"""POST /notifications/broadcast: one notification row per resolved recipient."""

from typing import Any

from transit.api import acting_user_id, api_handler, json_response, notification_pusher, parse_body
from transit.models.notification import BroadcastRequest
from transit.services.notifications import broadcast
from transit.store import get_store


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    sender_id = acting_user_id(event)
    request = parse_body(event, BroadcastRequest)

    notifications = broadcast(get_store(), request, sender_id=sender_id, push=notification_pusher())

    return json_response(201, {"notified": len(notifications), "userIds": [n.user_id for n in notifications]})
