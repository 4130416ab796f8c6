"""
JSON file storage.

One JSON document per namespace, stored as {directory}/{namespace}.json:

    {
      "records": {"<item_id>": {...ItemRecord.to_dict()...}},
      "deadlines": {"<item_id>": 4200}
    }

The document is read once into a cache and rewritten on every set(). A
document or record that cannot be parsed raises StorageError and the file
is left as it is on disk.
"""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from loguru import logger

from fluency.adaptive.memory_model import ItemRecord
from fluency.errors import StorageError


class JsonFileStorage:
    """File-backed storage adapter, namespaced per quiz mode."""

    def __init__(self, directory: str | Path, namespace: str = "default"):
        self.directory = Path(directory).expanduser()
        self.namespace = namespace
        self.path = self.directory / f"{namespace}.json"
        self._document: dict[str, dict[str, Any]] | None = None

    # -------------------------------------------------------------------------
    # Document I/O
    # -------------------------------------------------------------------------

    def _load(self) -> dict[str, dict[str, Any]]:
        if self._document is not None:
            return self._document

        document: dict[str, dict[str, Any]] = {"records": {}, "deadlines": {}}
        if self.path.exists():
            try:
                with open(self.path, encoding="utf-8") as f:
                    data = json.load(f)
                document["records"] = dict(data.get("records", {}))
                document["deadlines"] = dict(data.get("deadlines", {}))
            except (json.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
                logger.error(f"Unreadable storage file {self.path}: {e}")
                raise StorageError(f"Cannot read {self.path}: {e}") from e
        self._document = document
        return document

    def _save(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._document, f, indent=2, sort_keys=True)
        os.replace(tmp_path, self.path)

    # -------------------------------------------------------------------------
    # StorageAdapter
    # -------------------------------------------------------------------------

    def get(self, item_id: str) -> ItemRecord | None:
        data = self._load()["records"].get(item_id)
        if data is None:
            return None
        try:
            return ItemRecord.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed record {item_id!r} in {self.path}: {e}")
            raise StorageError(f"Malformed record {item_id!r} in {self.path}: {e}") from e

    def set(self, item_id: str, record: ItemRecord) -> None:
        self._load()["records"][item_id] = record.to_dict()
        self._save()

    def preload(self, item_ids: Iterable[str]) -> None:
        """The whole namespace is one document, so loading it warms every item."""
        self._load()

    def get_deadline(self, item_id: str) -> int | None:
        value = self._load()["deadlines"].get(item_id)
        return int(value) if value is not None else None

    def set_deadline(self, item_id: str, deadline_ms: int) -> None:
        self._load()["deadlines"][item_id] = int(deadline_ms)
        self._save()

    def item_ids(self) -> list[str]:
        return sorted(self._load()["records"])
