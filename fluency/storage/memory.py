"""
In-memory storage (for tests and simulations).
"""

from __future__ import annotations

from typing import Any

from fluency.adaptive.memory_model import ItemRecord


class MemoryStorage:
    """
    Dict-backed storage adapter.

    Records are held in serialized form so every get() returns a fresh
    ItemRecord, exactly like a durable backend would.
    """

    def __init__(self, namespace: str = "default"):
        self.namespace = namespace
        self._records: dict[str, dict[str, Any]] = {}
        self._deadlines: dict[str, int] = {}

    def get(self, item_id: str) -> ItemRecord | None:
        data = self._records.get(item_id)
        return ItemRecord.from_dict(data) if data is not None else None

    def set(self, item_id: str, record: ItemRecord) -> None:
        self._records[item_id] = record.to_dict()

    def get_deadline(self, item_id: str) -> int | None:
        return self._deadlines.get(item_id)

    def set_deadline(self, item_id: str, deadline_ms: int) -> None:
        self._deadlines[item_id] = deadline_ms

    def item_ids(self) -> list[str]:
        return sorted(self._records)

    def __len__(self) -> int:
        return len(self._records)
