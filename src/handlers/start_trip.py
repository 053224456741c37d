"""POST /trips/{id}/start: the driver reports the trip under way."""

from typing import Any

from transit.api import api_handler, json_response, path_param
from transit.config import get_config
from transit.services.trips import start_trip
from transit.store import get_store


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    trip = start_trip(get_store(), path_param(event, "id"), tz=get_config().tz)
    return json_response(200, trip.to_api())
