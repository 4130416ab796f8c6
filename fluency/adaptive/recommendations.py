"""
Group recommendations: consolidate before expanding.

The item pool is split into a fixed, ordered list of groups (strings on an
instrument, interval distances, chord families...). The policy:

1. Groups with any seen item are "started"; the rest are "unstarted".
2. Started groups carrying more work than the typical started group are
   recommended for consolidation.
3. Only when enough of the seen material is fluent does the next unstarted
   group get suggested, always in a stable order.

Pure with respect to item records: only selector.get_automaticity() is read.
"""

from __future__ import annotations

import statistics
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from loguru import logger

from fluency.adaptive.config import AdaptiveConfig


class AutomaticitySource(Protocol):
    def get_automaticity(self, item_id: str) -> float | None: ...


@dataclass
class GroupSummary:
    """Per-group progress counts."""

    index: int
    due_count: int  # seen, automaticity below threshold
    unseen_count: int
    mastered_count: int  # seen, automaticity at or above threshold
    total_count: int
    work: float | None = None  # median (1 - automaticity) over seen items

    @property
    def seen_count(self) -> int:
        return self.due_count + self.mastered_count

    @property
    def is_started(self) -> bool:
        return self.seen_count > 0


@dataclass
class RecommendationResult:
    """What to practice next."""

    recommended: set[int] = field(default_factory=set)
    enabled: set[int] | None = None  # ready-to-adopt enabled set; None = no opinion
    consolidate_indices: list[int] = field(default_factory=list)
    consolidate_due_count: int = 0
    expand_index: int | None = None
    expand_new_count: int = 0

    @property
    def has_suggestion(self) -> bool:
        return bool(self.recommended)


def _summarize(
    selector: AutomaticitySource,
    index: int,
    item_ids: Sequence[str],
    threshold: float,
) -> GroupSummary:
    due = unseen = mastered = 0
    remaining_work = []
    for item_id in item_ids:
        auto = selector.get_automaticity(item_id)
        if auto is None:
            unseen += 1
            continue
        remaining_work.append(1.0 - auto)
        if auto >= threshold:
            mastered += 1
        else:
            due += 1
    return GroupSummary(
        index=index,
        due_count=due,
        unseen_count=unseen,
        mastered_count=mastered,
        total_count=len(item_ids),
        work=statistics.median(remaining_work) if remaining_work else None,
    )


def summarize_groups(
    selector: AutomaticitySource,
    group_indices: Iterable[int],
    items_for_group: Callable[[int], Sequence[str]],
    config: AdaptiveConfig,
) -> list[GroupSummary]:
    """
    Progress counts per group, most outstanding work (due + unseen) first.

    Args:
        selector: Anything exposing get_automaticity(item_id)
        group_indices: Groups to summarize
        items_for_group: Maps a group index to its item ids
        config: Active config (automaticity_threshold)
    """
    summaries = [
        _summarize(selector, index, list(items_for_group(index)), config.automaticity_threshold)
        for index in group_indices
    ]
    summaries.sort(key=lambda s: s.due_count + s.unseen_count, reverse=True)
    return summaries


def compute_recommendations(
    selector: AutomaticitySource,
    group_indices: Iterable[int],
    items_for_group: Callable[[int], Sequence[str]],
    config: AdaptiveConfig,
    sort_key: Callable[[GroupSummary], object] | None = None,
) -> RecommendationResult:
    """
    Decide which groups to recommend, consolidating before expanding.

    Args:
        selector: Anything exposing get_automaticity(item_id)
        group_indices: All group indices in sequence order
        items_for_group: Maps a group index to its item ids
        config: Active config (automaticity_threshold, expansion_threshold)
        sort_key: Optional ordering of unstarted groups; ties keep sequence order

    Returns:
        RecommendationResult; empty with enabled=None when nothing is started
    """
    threshold = config.automaticity_threshold
    summaries = [
        _summarize(selector, index, list(items_for_group(index)), threshold)
        for index in group_indices
    ]
    started = [s for s in summaries if s.is_started]
    unstarted = [s for s in summaries if not s.is_started]

    if not started:
        logger.debug("No started groups - nothing to recommend")
        return RecommendationResult()

    # Consolidation: started groups with above-median work
    median_work = statistics.median(s.work for s in started)
    by_work = sorted(started, key=lambda s: s.work, reverse=True)
    consolidate = [s for s in by_work if s.work > median_work]

    result = RecommendationResult(
        consolidate_indices=[s.index for s in consolidate],
        consolidate_due_count=sum(s.due_count for s in consolidate),
    )

    # Expansion: only once enough seen material is fluent
    total_seen = sum(s.seen_count for s in started)
    total_mastered = sum(s.mastered_count for s in started)
    ratio = total_mastered / total_seen if total_seen else 0.0

    if ratio >= config.expansion_threshold and unstarted:
        # sorted() is stable, so ties fall back to sequence order
        candidates = sorted(unstarted, key=sort_key) if sort_key else unstarted
        result.expand_index = candidates[0].index
        result.expand_new_count = candidates[0].total_count

    result.recommended = set(result.consolidate_indices)
    result.enabled = {s.index for s in started}
    if result.expand_index is not None:
        result.recommended.add(result.expand_index)
        result.enabled.add(result.expand_index)

    logger.debug(
        f"Recommendations: consolidate={result.consolidate_indices} "
        f"expand={result.expand_index} (ratio {ratio:.0%})"
    )
    return result
