"""Read-only lookups of users, buses, routes and per-trip aggregates.

Used for display enrichment and recipient resolution. Every single-record
lookup degrades to None: a broken or missing reference must never fail the
response it decorates.
"""

import logging
from typing import Any, TypeVar

import pydantic

from transit.models.user import Bus, Route, User, UserRole
from transit.store import RecordStore

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=pydantic.BaseModel)


class Directory:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def _lookup(self, collection: str, record_id: str | None, model: type[M]) -> M | None:
        if not record_id:
            return None
        try:
            record = self._store.get(collection, record_id)
            if record is None:
                logger.warning("No %s record for id %s", collection, record_id)
                return None
            return model.model_validate(record)
        except Exception:
            logger.exception("Lookup of %s/%s failed", collection, record_id)
            return None

    def user(self, user_id: str | None) -> User | None:
        return self._lookup("users", user_id, User)

    def bus(self, bus_id: str | None) -> Bus | None:
        return self._lookup("buses", bus_id, Bus)

    def route(self, route_id: str | None) -> Route | None:
        return self._lookup("routes", route_id, Route)

    def users(self, role: UserRole | None = None) -> list[User]:
        filters = {"role": role.value} if role is not None else {}
        users = []
        for record in self._store.scan("users", **filters):
            try:
                users.append(User.model_validate(record))
            except pydantic.ValidationError:
                logger.warning("Skipping malformed user record %s", record.get("id"))
        return users

    def bookings_for_trip(self, trip_id: str) -> list[dict[str, Any]]:
        try:
            return self._store.scan("bookings", trip_id=trip_id)
        except Exception:
            logger.exception("Booking lookup for trip %s failed", trip_id)
            return []

    def payments_for_trip(self, trip_id: str) -> list[dict[str, Any]]:
        try:
            return self._store.scan("payments", trip_id=trip_id)
        except Exception:
            logger.exception("Payment lookup for trip %s failed", trip_id)
            return []
