"""GET /trips: reconcile, then list trips with effective status and joined data."""

from typing import Any

from transit.api import api_handler, json_response, parse_query, reconciler_for
from transit.config import get_config
from transit.models.trip import TripFilters
from transit.services.trips import list_trips
from transit.store import get_store


@api_handler
def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    config = get_config()
    store = get_store()
    filters = parse_query(event, TripFilters)

    reconciler = reconciler_for(store, config) if config.reconcile_on_read else None
    trips = list_trips(store, filters, reconciler=reconciler, delay_grace=config.delay_grace, tz=config.tz)

    return json_response(200, [trip.to_api() for trip in trips])
