"""POST /bookings/{id}/{action}: mark a booked student absent or present."""

from typing import Any

from transit.api import api_handler, json_response, notification_pusher, path_param
from transit.errors import ErrorCode, ValidationError
from transit.services.attendance import mark_absent, mark_present
from transit.store import get_store


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    booking_id = path_param(event, "id")
    action = path_param(event, "action")
    store = get_store()

    if action == "absent":
        outcome = mark_absent(store, booking_id, push=notification_pusher())
    elif action == "present":
        outcome = mark_present(store, booking_id)
    else:
        raise ValidationError(f"Unknown attendance action {action!r}", code=ErrorCode.INVALID_REQUEST)

    return json_response(201, outcome.to_api())
