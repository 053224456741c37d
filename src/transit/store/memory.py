"""In-process store used by unit tests and local runs."""

import copy
import threading
from collections.abc import Iterable, Mapping
from typing import Any

from transit.errors import StaleRecordError

from .interface import COLLECTIONS, RecordStore


class InMemoryStore(RecordStore):
    def __init__(self, seed: Mapping[str, Iterable[Mapping[str, Any]]] | None = None) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, dict[str, dict[str, Any]]] = {name: {} for name in COLLECTIONS}
        for collection, records in (seed or {}).items():
            for record in records:
                self._table(collection)[str(record["id"])] = copy.deepcopy(dict(record))

    def _table(self, collection: str) -> dict[str, dict[str, Any]]:
        if collection not in self._data:
            raise KeyError(f"Unknown collection: {collection}")
        return self._data[collection]

    def get(self, collection: str, record_id: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._table(collection).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    def scan(self, collection: str, **filters: Any) -> list[dict[str, Any]]:
        with self._lock:
            return [
                copy.deepcopy(record)
                for record in self._table(collection).values()
                if all(record.get(key) == value for key, value in filters.items())
            ]

    def put(
        self,
        collection: str,
        record: Mapping[str, Any],
        *,
        expected: Mapping[str, Any] | None = None,
    ) -> None:
        record_id = str(record["id"])
        with self._lock:
            table = self._table(collection)
            if expected is not None:
                current = table.get(record_id)
                if current is None or any(current.get(k) != v for k, v in expected.items()):
                    raise StaleRecordError(f"{collection}/{record_id} changed since it was read")
            table[record_id] = copy.deepcopy(dict(record))

    def delete(self, collection: str, record_id: str) -> bool:
        with self._lock:
            return self._table(collection).pop(record_id, None) is not None

    def count(self, collection: str) -> int:
        with self._lock:
            return len(self._table(collection))
