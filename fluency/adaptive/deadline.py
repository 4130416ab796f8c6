"""
Per-item adaptive response deadlines.

A staircase per item: the time limit tightens after correct answers and
relaxes after misses or timeouts, always within
[min_time * min_deadline_margin, max_response_time].
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from fluency.adaptive.config import DEFAULT_CONFIG, AdaptiveConfig


class DeadlineConfig(BaseModel):
    """Staircase tuning constants."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    decrease_factor: float = Field(default=0.85, gt=0, lt=1)  # after a correct answer
    increase_factor: float = Field(default=1.4, gt=1)  # after a miss or timeout
    min_deadline_margin: float = Field(default=1.3, ge=1)  # floor = min_time * this
    ewma_multiplier: float = Field(default=2.0, gt=0)  # cold start from history
    headroom_multiplier: float = Field(default=1.5, gt=0)  # response-time anchored target
    max_drop_factor: float = Field(default=0.5, gt=0, le=1)  # largest single-step decrease


DEFAULT_DEADLINE_CONFIG = DeadlineConfig()


class DeadlineStore(Protocol):
    def get_deadline(self, item_id: str) -> int | None: ...

    def set_deadline(self, item_id: str, deadline_ms: int) -> None: ...


def _bounds(cfg: AdaptiveConfig, dl_cfg: DeadlineConfig) -> tuple[int, int]:
    min_deadline = round(cfg.min_time * dl_cfg.min_deadline_margin)
    max_deadline = round(cfg.max_response_time)
    return min_deadline, max(min_deadline, max_deadline)


def compute_initial_deadline(
    ewma: float | None,
    cfg: AdaptiveConfig,
    dl_cfg: DeadlineConfig = DEFAULT_DEADLINE_CONFIG,
) -> int:
    """
    Starting deadline for an item.

    Items with history start at ewma * ewma_multiplier (about twice their
    average speed); unseen items start at the generous ceiling.
    """
    min_deadline, max_deadline = _bounds(cfg, dl_cfg)
    if ewma is None:
        return max_deadline
    return max(min_deadline, min(max_deadline, round(ewma * dl_cfg.ewma_multiplier)))


def adjust_deadline(
    current_deadline: int,
    correct: bool,
    cfg: AdaptiveConfig,
    dl_cfg: DeadlineConfig = DEFAULT_DEADLINE_CONFIG,
    response_time: float | None = None,
) -> int:
    """
    Move a deadline one step after an outcome.

    Correct: the tighter of the staircase step and response_time * headroom,
    but never below max_drop_factor of the current deadline.
    Incorrect: relax by increase_factor.
    """
    min_deadline, max_deadline = _bounds(cfg, dl_cfg)

    if not correct:
        adjusted = round(current_deadline * dl_cfg.increase_factor)
        return max(min_deadline, min(max_deadline, adjusted))

    target = round(current_deadline * dl_cfg.decrease_factor)
    if response_time is not None and response_time > 0:
        target = min(target, round(response_time * dl_cfg.headroom_multiplier))
    floor = round(current_deadline * dl_cfg.max_drop_factor)
    adjusted = max(target, floor)
    return max(min_deadline, min(max_deadline, adjusted))


class DeadlineTracker:
    """Per-item deadlines persisted through a DeadlineStore."""

    def __init__(
        self,
        store: DeadlineStore,
        config: AdaptiveConfig = DEFAULT_CONFIG,
        deadline_config: DeadlineConfig = DEFAULT_DEADLINE_CONFIG,
    ):
        self.store = store
        self.config = config
        self.deadline_config = deadline_config

    def replace_config(self, config: AdaptiveConfig) -> None:
        """Swap the adaptive config (e.g. after motor baseline calibration)."""
        self.config = config

    def get_deadline(self, item_id: str, ewma: float | None = None, response_count: int = 1) -> int:
        """
        Stored deadline, or a cold start from the item's EWMA (then persisted).

        Items answered with several responses get bounds scaled by response_count.
        """
        stored = self.store.get_deadline(item_id)
        if stored is not None and stored > 0:
            return stored
        initial = compute_initial_deadline(
            ewma, self.config.scaled_for_responses(response_count), self.deadline_config
        )
        self.store.set_deadline(item_id, initial)
        return initial

    def record_outcome(
        self,
        item_id: str,
        correct: bool,
        response_time: float | None = None,
        ewma: float | None = None,
        response_count: int = 1,
    ) -> int:
        """Adjust and persist the item's deadline; returns the new deadline."""
        current = self.get_deadline(item_id, ewma, response_count)
        new_deadline = adjust_deadline(
            current,
            correct,
            self.config.scaled_for_responses(response_count),
            self.deadline_config,
            response_time,
        )
        self.store.set_deadline(item_id, new_deadline)
        logger.debug(f"Deadline for {item_id}: {current}ms -> {new_deadline}ms")
        return new_deadline
