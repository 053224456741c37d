"""POST /trips: store a trip and notify its driver and supervisor."""

from typing import Any

from transit.api import api_handler, json_response, notification_pusher, parse_body
from transit.config import get_config
from transit.models.trip import TripCreate
from transit.services.trips import create_trip
from transit.store import get_store


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    config = get_config()
    payload = parse_body(event, TripCreate)

    trip, notifications = create_trip(get_store(), payload, push=notification_pusher(config))

    return json_response(201, {"trip": trip.to_api(), "notified": [n.user_id for n in notifications]})
