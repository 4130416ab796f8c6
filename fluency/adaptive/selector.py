"""
Adaptive Selector - picks the next item to drill.

Weighted random draw over the enabled items:
- Unseen items get a fixed unseen_boost so new material enters promptly
- Seen items weigh (1 - recall) + ewma / min_time, so both stale and slow
  items come up more often
- The previous pick gets weight 0 unless it is the only enabled item

The "previous pick" lives on the selector instance, one per session, so
independent sessions never interfere.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from typing import Any

from loguru import logger

from fluency.adaptive.config import DEFAULT_CONFIG, AdaptiveConfig
from fluency.adaptive.memory_model import Clock, ItemRecord, MemoryModel, ResponseCount
from fluency.errors import EmptyPool


def compute_weight(record: ItemRecord | None, recall: float | None, cfg: AdaptiveConfig) -> float:
    """
    Selection weight for one item.

    Args:
        record: The item's record (None if unseen)
        recall: Current recall probability (None if never answered correctly)
        cfg: Active config

    Returns:
        unseen_boost for unseen items, otherwise (1 - recall) + speed weight
    """
    if record is None or not record.is_seen:
        return cfg.unseen_boost
    speed_weight = max(record.ewma, cfg.min_time) / cfg.min_time
    staleness = 1.0 - (recall if recall is not None else 0.0)
    return staleness + speed_weight


def select_weighted(items: Sequence[str], weights: Sequence[float], rand: float) -> str:
    """
    Weighted random selection. ``rand`` must be in [0, 1).

    Zero-weight items are never returned while any positive weight exists;
    if every weight is zero the draw is uniform.
    """
    if not items:
        raise EmptyPool("Cannot select from an empty item list")
    total = sum(w for w in weights if w > 0)
    if total <= 0:
        return items[min(int(rand * len(items)), len(items) - 1)]

    remaining = rand * total
    last_positive = None
    for item, weight in zip(items, weights):
        if weight <= 0:
            continue
        if remaining < weight:
            return item
        remaining -= weight
        last_positive = item
    # Float rounding can leave a sliver of remaining weight
    return last_positive


class AdaptiveSelector:
    """
    Per-session facade over the memory model plus the selection engine.

    Usage:
        selector = AdaptiveSelector(MemoryStorage(), rng=random.Random(42))
        item = selector.select_next(["C", "D", "E"])
        selector.record_response(item, 1450, correct=True)
        selector.get_automaticity(item)
    """

    def __init__(
        self,
        storage: Any,
        config: AdaptiveConfig = DEFAULT_CONFIG,
        rng: random.Random | None = None,
        clock: Clock | None = None,
        response_count: ResponseCount | None = None,
    ):
        """
        Initialize selector with injected storage, randomness and clock.

        Args:
            storage: StorageAdapter for item records
            config: Active AdaptiveConfig
            rng: Object with a random() method returning floats in [0, 1)
            clock: Callable returning the current aware datetime
            response_count: Item id -> responses per answer, for items such
                as chords whose timings scale with the number of notes
        """
        self.memory = MemoryModel(storage, config, clock, response_count)
        self.rng = rng or random.Random()
        self.previous_item_id: str | None = None

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def config(self) -> AdaptiveConfig:
        return self.memory.config

    def replace_config(self, config: AdaptiveConfig) -> None:
        """Swap in a new configuration wholesale (e.g. after calibration)."""
        self.memory.replace_config(config)

    def reset(self) -> None:
        """Forget the previous pick (start of a new session)."""
        self.previous_item_id = None

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def get_weight(self, item_id: str) -> float:
        record = self.memory.get_stats(item_id)
        return compute_weight(
            record, self.memory.get_recall(item_id), self.memory.config_for(item_id)
        )

    def select_next(self, enabled_item_ids: Iterable[str]) -> str:
        """
        Pick the next item to present.

        Args:
            enabled_item_ids: Candidate item ids (must be non-empty)

        Returns:
            The chosen item id, never equal to the previous pick unless the
            pool holds a single distinct item

        Raises:
            EmptyPool: If no candidates were given
        """
        items = list(dict.fromkeys(enabled_item_ids))
        if not items:
            raise EmptyPool("enabled_item_ids cannot be empty")

        if len(items) == 1:
            self.previous_item_id = items[0]
            return items[0]

        self.memory.preload(items)
        weights = [
            0.0 if item_id == self.previous_item_id else self.get_weight(item_id)
            for item_id in items
        ]
        selected = select_weighted(items, weights, self.rng.random())
        logger.debug(f"Selected {selected} from {len(items)} candidates")
        self.previous_item_id = selected
        return selected

    # -------------------------------------------------------------------------
    # Memory model delegation
    # -------------------------------------------------------------------------

    def record_response(self, item_id: str, latency_ms: float, correct: bool = True) -> ItemRecord:
        return self.memory.record_response(item_id, latency_ms, correct)

    def get_stats(self, item_id: str) -> ItemRecord | None:
        return self.memory.get_stats(item_id)

    def get_recall(self, item_id: str) -> float | None:
        return self.memory.get_recall(item_id)

    def get_speed_score(self, item_id: str) -> float | None:
        return self.memory.get_speed_score(item_id)

    def get_automaticity(self, item_id: str) -> float | None:
        return self.memory.get_automaticity(item_id)

    def check_all_mastered(self, item_ids: Iterable[str]) -> bool:
        return self.memory.check_all_mastered(item_ids)

    def check_needs_review(self, item_ids: Iterable[str]) -> bool:
        return self.memory.check_needs_review(item_ids)
