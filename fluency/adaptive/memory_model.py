"""
Memory Model - per-item response history and derived mastery scores.

Each item keeps one ItemRecord, updated on every observed answer:
- EWMA of response latency (recency-biased speed estimate)
- Stability: half-life of a 2^(-t/S) forgetting curve, in hours
- Seen / correct counters and timestamps

From the record the model derives:
- Recall score:  2^(-hours_since_last_correct / stability)
- Speed score:   1.0 at min_time, 0.5 at automaticity_target, -> 0 when slow
- Automaticity:  recall * speed ("known without thinking")

Unseen items have no record and every derived score is None for them.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

from loguru import logger

from fluency.adaptive.config import DEFAULT_CONFIG, AdaptiveConfig
from fluency.errors import InvalidInput

Clock = Callable[[], datetime]
ResponseCount = Callable[[str], int]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


# =============================================================================
# Item Record
# =============================================================================


@dataclass
class ItemRecord:
    """Mutable learning state for one item. Owned by the MemoryModel."""

    ewma: float
    stability: float  # hours until recall decays to 50%
    last_seen_at: datetime
    last_correct_at: datetime | None = None
    seen_count: int = 0
    correct_count: int = 0
    consecutive_correct: int = 0
    recent_times: list[float] = field(default_factory=list)

    @property
    def is_seen(self) -> bool:
        return self.seen_count > 0

    @property
    def accuracy(self) -> float | None:
        if not self.seen_count:
            return None
        return self.correct_count / self.seen_count

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data["last_seen_at"] = self.last_seen_at.isoformat()
        data["last_correct_at"] = (
            self.last_correct_at.isoformat() if self.last_correct_at else None
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ItemRecord:
        """Create from dictionary."""
        last_correct = data.get("last_correct_at")
        return cls(
            ewma=float(data["ewma"]),
            stability=float(data["stability"]),
            last_seen_at=_parse_timestamp(data["last_seen_at"]),
            last_correct_at=_parse_timestamp(last_correct) if last_correct else None,
            seen_count=int(data.get("seen_count", 0)),
            correct_count=int(data.get("correct_count", 0)),
            consecutive_correct=int(data.get("consecutive_correct", 0)),
            recent_times=[float(t) for t in data.get("recent_times", [])],
        )


def _parse_timestamp(value: str | datetime) -> datetime:
    ts = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    # Naive timestamps are treated as UTC
    return ts if ts.tzinfo else ts.replace(tzinfo=UTC)


# =============================================================================
# Pure functions
# =============================================================================


def clamp_latency(latency_ms: float, cfg: AdaptiveConfig) -> float:
    """Clamp a raw latency into [min_time, max_response_time]."""
    return max(cfg.min_time, min(latency_ms, cfg.max_response_time))


def compute_ewma(old_ewma: float, new_time: float, alpha: float) -> float:
    return alpha * new_time + (1 - alpha) * old_ewma


def compute_recall(stability_hours: float | None, elapsed_hours: float | None) -> float | None:
    """
    Predicted recall using the half-life model: P = 2^(-t/S).

    At t = stability, P = 0.5. Returns None when there is no data.
    """
    if stability_hours is None or elapsed_hours is None:
        return None
    if stability_hours <= 0:
        return 0.0
    if elapsed_hours <= 0:
        return 1.0
    return math.pow(2, -elapsed_hours / stability_hours)


def compute_speed_score(ewma_ms: float | None, cfg: AdaptiveConfig) -> float | None:
    """
    Map an EWMA latency onto [0, 1].

    - min_time            -> 1.0 (as fast as the learner can physically go)
    - automaticity_target -> 0.5
    - very slow           -> approaches 0
    """
    if ewma_ms is None:
        return None
    k = math.log(2) / (cfg.automaticity_target - cfg.min_time)
    return math.exp(-k * max(0.0, ewma_ms - cfg.min_time))


def compute_automaticity(recall: float | None, speed_score: float | None) -> float | None:
    """Automaticity = recall * speed. None if either side is missing."""
    if recall is None or speed_score is None:
        return None
    return recall * speed_score


def speed_factor(latency_ms: float, cfg: AdaptiveConfig) -> float:
    """
    Growth multiplier for a correct answer: 1.0 (slowest) to speed_bonus_max (fastest).
    """
    span = cfg.max_response_time - cfg.min_time
    if span <= 0:
        return 1.0
    clamped = clamp_latency(latency_ms, cfg)
    t = (cfg.max_response_time - clamped) / span
    return 1.0 + t * (cfg.speed_bonus_max - 1.0)


def grow_stability(
    old_stability: float,
    latency_ms: float,
    streak: int,
    elapsed_hours: float | None,
    cfg: AdaptiveConfig,
) -> float:
    """
    Stability after a correct answer.

    The multiplier is always > 1 and shrinks as the streak of consecutive
    correct answers grows, so a long run of successes cannot blow stability
    up geometrically.

    Self-correction: a fast answer after a long gap proves the true half-life
    is at least that long, so stability is lifted to 1.5x the gap.
    """
    boost = cfg.stability_growth_base * speed_factor(latency_ms, cfg) - 1.0
    growth = 1.0 + boost / (1.0 + cfg.streak_damping * streak)
    new_stability = old_stability * growth

    if (
        elapsed_hours is not None
        and elapsed_hours > 0
        and latency_ms < cfg.self_correction_threshold
    ):
        new_stability = max(new_stability, elapsed_hours * 1.5)

    return min(new_stability, cfg.max_stability)


def shrink_stability(old_stability: float, cfg: AdaptiveConfig) -> float:
    """
    Stability after a wrong answer.

    Cut sharply, never above a brand-new item's stability, never below the floor.
    """
    shrunk = min(cfg.initial_stability, old_stability * cfg.stability_decay_on_wrong)
    return max(cfg.min_stability, shrunk)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600.0


def validate_latency(latency_ms: Any) -> float:
    """Reject negative, NaN, infinite or non-numeric latencies."""
    if isinstance(latency_ms, bool) or not isinstance(latency_ms, (int, float)):
        raise InvalidInput(f"Latency must be a number, got {latency_ms!r}")
    if math.isnan(latency_ms) or math.isinf(latency_ms):
        raise InvalidInput(f"Latency must be finite, got {latency_ms!r}")
    if latency_ms < 0:
        raise InvalidInput(f"Latency must be non-negative, got {latency_ms!r}")
    return float(latency_ms)


# =============================================================================
# Memory Model
# =============================================================================


class MemoryModel:
    """
    Owns item records and derives recall / speed / automaticity from them.

    Storage and clock are injected; the model keeps no records of its own,
    so every read goes through the storage adapter.
    """

    def __init__(
        self,
        storage: Any,
        config: AdaptiveConfig = DEFAULT_CONFIG,
        clock: Clock | None = None,
        response_count: ResponseCount | None = None,
    ):
        """
        Initialize the model.

        Args:
            storage: StorageAdapter with get(item_id) / set(item_id, record)
            config: Active AdaptiveConfig
            clock: Callable returning the current aware datetime
            response_count: Maps an item id to how many responses one answer
                takes (default: 1 for every item)
        """
        self.storage = storage
        self._config = config
        self.clock = clock or utc_now
        self.response_count = response_count

    @property
    def config(self) -> AdaptiveConfig:
        return self._config

    def replace_config(self, config: AdaptiveConfig) -> None:
        """Swap in a new configuration wholesale."""
        self._config = config
        logger.debug(f"Memory model config replaced: {config.time_ratios()}")

    def config_for(self, item_id: str) -> AdaptiveConfig:
        """Active config with time constants scaled to the item's response count."""
        if self.response_count is None:
            return self._config
        return self._config.scaled_for_responses(self.response_count(item_id))

    def preload(self, item_ids: Iterable[str]) -> None:
        """Forward a batch warm-up hint to storage when it supports one."""
        preload = getattr(self.storage, "preload", None)
        if callable(preload):
            preload(list(item_ids))

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def record_response(self, item_id: str, latency_ms: float, correct: bool = True) -> ItemRecord:
        """
        Record one observed answer and persist the updated record.

        Must be called exactly once per real response; it is not idempotent.

        Args:
            item_id: Item that was answered
            latency_ms: Time from question shown to answer (milliseconds)
            correct: Whether the answer was right

        Returns:
            The updated ItemRecord (as persisted)

        Raises:
            InvalidInput: For an empty item id or a negative/NaN/infinite latency
        """
        if not item_id or not isinstance(item_id, str):
            raise InvalidInput(f"Item id must be a non-empty string, got {item_id!r}")
        cfg = self.config_for(item_id)
        latency = clamp_latency(validate_latency(latency_ms), cfg)
        now = self.clock()
        existing = self.storage.get(item_id)

        if existing is None:
            existing = ItemRecord(
                ewma=latency,
                stability=cfg.initial_stability,
                last_seen_at=now,
            )
            ewma = latency
        else:
            ewma = compute_ewma(existing.ewma, latency, cfg.ewma_alpha)

        if correct:
            elapsed = (
                hours_between(existing.last_correct_at, now)
                if existing.last_correct_at
                else None
            )
            stability = grow_stability(
                existing.stability, latency, existing.consecutive_correct, elapsed, cfg
            )
        else:
            stability = shrink_stability(existing.stability, cfg)

        record = ItemRecord(
            ewma=clamp_latency(ewma, cfg),
            stability=stability,
            last_seen_at=now,
            last_correct_at=now if correct else existing.last_correct_at,
            seen_count=existing.seen_count + 1,
            correct_count=existing.correct_count + (1 if correct else 0),
            consecutive_correct=existing.consecutive_correct + 1 if correct else 0,
            recent_times=(existing.recent_times + [latency])[-cfg.max_stored_times:],
        )
        self.storage.set(item_id, record)

        logger.debug(
            f"Recorded {item_id}: {latency:.0f}ms {'correct' if correct else 'wrong'} "
            f"-> ewma={record.ewma:.0f} stability={record.stability:.2f}h"
        )
        return record

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_stats(self, item_id: str) -> ItemRecord | None:
        """
        Read-only snapshot of an item's record (None if unseen).

        The EWMA is reported within the active config's latency bounds, so a
        snapshot taken after replace_config() never shows a value the new
        config would have clamped. The stored record is not rewritten.
        """
        record = self.storage.get(item_id)
        if record is None or not record.is_seen:
            return None
        return replace(record, ewma=clamp_latency(record.ewma, self.config_for(item_id)))

    def get_recall(self, item_id: str) -> float | None:
        """Current recall probability; None if unseen or never answered correctly."""
        record = self.get_stats(item_id)
        if record is None or record.last_correct_at is None:
            return None
        return compute_recall(record.stability, hours_between(record.last_correct_at, self.clock()))

    def get_speed_score(self, item_id: str) -> float | None:
        record = self.get_stats(item_id)
        if record is None:
            return None
        return compute_speed_score(record.ewma, self.config_for(item_id))

    def get_automaticity(self, item_id: str) -> float | None:
        """
        Combined recall x speed score in [0, 1].

        None for unseen items. A seen item that was never answered correctly
        has no recall and scores 0.0 ("needs work" rather than "no data").
        """
        record = self.get_stats(item_id)
        if record is None:
            return None
        recall = self.get_recall(item_id)
        speed = compute_speed_score(record.ewma, self.config_for(item_id))
        return compute_automaticity(recall if recall is not None else 0.0, speed)

    def check_all_mastered(self, item_ids: Iterable[str]) -> bool:
        """True iff every item is seen with automaticity >= automaticity_threshold."""
        ids = list(item_ids)
        if not ids:
            return False
        for item_id in ids:
            auto = self.get_automaticity(item_id)
            if auto is None or auto < self._config.automaticity_threshold:
                return False
        return True

    def check_needs_review(self, item_ids: Iterable[str]) -> bool:
        """
        Check if previously-mastered material has faded.

        True only when every item shows strong prior skill (at least one
        correct answer and a speed score >= 0.5) yet at least one item's
        recall has since decayed below recall_threshold.
        """
        ids = list(item_ids)
        if not ids:
            return False
        has_due_item = False
        for item_id in ids:
            record = self.get_stats(item_id)
            if record is None or record.last_correct_at is None:
                return False
            speed = compute_speed_score(record.ewma, self.config_for(item_id))
            if speed is None or speed < 0.5:
                return False
            recall = self.get_recall(item_id)
            if recall is not None and recall < self._config.recall_threshold:
                has_due_item = True
        return has_due_item
