"""
Record store abstraction and adapters.

``get_store`` picks the adapter named by ``STORE_BACKEND``; tests build an
``InMemoryStore`` directly.
"""

from transit.store.dynamo import DynamoStore
from transit.store.interface import COLLECTIONS, RecordStore
from transit.store.memory import InMemoryStore

__all__ = ["COLLECTIONS", "DynamoStore", "InMemoryStore", "RecordStore", "get_store"]


_memory_store: InMemoryStore | None = None


def get_store() -> RecordStore:
    global _memory_store
    from transit.config import get_config

    config = get_config()
    if config.store_backend == "memory":
        if _memory_store is None:
            _memory_store = InMemoryStore()
        return _memory_store

    from transit.clients import get_dynamo_resource

    return DynamoStore(config, get_dynamo_resource())
