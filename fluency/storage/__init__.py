"""
Storage adapters for item records.

- MemoryStorage: dict-backed, for tests and simulations
- JsonFileStorage: one JSON document per namespace
- SqlStorage: SQLAlchemy tables keyed by (namespace, item_id)
"""

from __future__ import annotations

from typing import Any

from fluency.storage.base import PreloadingStorage, StorageAdapter
from fluency.storage.json_store import JsonFileStorage
from fluency.storage.memory import MemoryStorage
from fluency.storage.sql_store import SqlStorage


def create_storage(settings: Any = None, namespace: str | None = None) -> StorageAdapter:
    """
    Build the storage adapter selected by settings.

    Args:
        settings: Settings instance (defaults to config.get_settings())
        namespace: Override for settings.storage_namespace

    Returns:
        A MemoryStorage, JsonFileStorage or SqlStorage
    """
    if settings is None:
        from config import get_settings

        settings = get_settings()

    storage_cfg = settings.get_storage_config()
    namespace = namespace or storage_cfg["namespace"]
    backend = storage_cfg["backend"]

    if backend == "memory":
        return MemoryStorage(namespace)
    if backend == "sql":
        return SqlStorage(storage_cfg["database_url"], namespace)
    return JsonFileStorage(storage_cfg["directory"], namespace)


__all__ = [
    "StorageAdapter",
    "PreloadingStorage",
    "MemoryStorage",
    "JsonFileStorage",
    "SqlStorage",
    "create_storage",
]
