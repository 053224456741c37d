from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

COLLECTIONS = ("trips", "bookings", "attendance", "notifications", "users", "buses", "routes", "payments")


class RecordStore(ABC):
    """Per-record access to the entity collections, keyed by ``id``.

    ``scan`` returns every record whose fields equal the given filters.

    ``put`` with ``expected`` is an atomic compare-and-set: the write only
    happens if a record with that id exists and every expected field still
    holds the given value, otherwise ``StaleRecordError`` is raised.
    """

    @abstractmethod
    def get(self, collection: str, record_id: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def scan(self, collection: str, **filters: Any) -> list[dict[str, Any]]: ...

    @abstractmethod
    def put(
        self,
        collection: str,
        record: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> None: ...

    @abstractmethod
    def delete(self, collection: str, record_id: str) -> bool: ...
