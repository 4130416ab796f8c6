"""
Storage adapter contract.

The engine never persists anything itself: it reads and writes one
ItemRecord per item id through an injected adapter. Adapters must hand out
fresh objects from get(), so callers cannot mutate stored state by accident.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from fluency.adaptive.memory_model import ItemRecord


@runtime_checkable
class StorageAdapter(Protocol):
    """Durable key-value store of item records."""

    def get(self, item_id: str) -> ItemRecord | None: ...

    def set(self, item_id: str, record: ItemRecord) -> None: ...


@runtime_checkable
class PreloadingStorage(StorageAdapter, Protocol):
    """Adapter that can warm a cache for a batch of items."""

    def preload(self, item_ids: Iterable[str]) -> None: ...
