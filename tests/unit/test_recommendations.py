"""
Unit tests for group recommendations (consolidate before expanding).
"""

import pytest

from fluency.adaptive.config import DEFAULT_CONFIG
from fluency.adaptive.recommendations import compute_recommendations, summarize_groups


class FakeAutomaticity:
    """Automaticity lookup backed by a dict; missing ids are unseen."""

    def __init__(self, scores):
        self.scores = scores

    def get_automaticity(self, item_id):
        return self.scores.get(item_id)


GROUPS = {
    0: ["a1", "a2", "a3"],
    1: ["b1", "b2"],
    2: ["c1", "c2", "c3", "c4"],
}


def recommend(scores, groups=GROUPS, **kwargs):
    return compute_recommendations(
        FakeAutomaticity(scores), list(groups), lambda i: groups[i], DEFAULT_CONFIG, **kwargs
    )


class TestNothingStarted:
    def test_empty_result_without_started_groups(self):
        result = recommend({})

        assert result.recommended == set()
        assert result.enabled is None
        assert result.expand_index is None
        assert result.has_suggestion is False


class TestConsolidateBeforeExpand:
    """Tests for the recommendation policy."""

    def test_mastered_group_expands_to_next(self):
        groups = {0: ["a1", "a2"], 1: ["b1", "b2", "b3"]}
        result = recommend({"a1": 0.9, "a2": 0.95}, groups)

        assert result.expand_index == 1
        assert result.expand_new_count == 3
        assert result.consolidate_indices == []
        assert result.recommended == {1}
        assert result.enabled == {0, 1}

    def test_weak_material_blocks_expansion(self):
        result = recommend({"a1": 0.1, "a2": 0.2, "a3": 0.9})

        assert result.expand_index is None
        assert result.enabled == {0}

    def test_group_with_above_median_work_consolidated(self):
        scores = {
            "a1": 0.9, "a2": 0.9, "a3": 0.9,  # work 0.1
            "b1": 0.1, "b2": 0.3,  # work 0.8
            "c1": 0.8,  # work 0.2
        }
        result = recommend(scores)

        assert result.consolidate_indices == [1]
        assert result.consolidate_due_count == 2
        assert 1 in result.recommended

    def test_consolidation_ordered_by_work(self):
        groups = {0: ["a"], 1: ["b"], 2: ["c"], 3: ["d"]}
        result = recommend({"a": 0.9, "b": 0.3, "c": 0.8, "d": 0.1}, groups)

        assert result.consolidate_indices == [3, 1]

    def test_expansion_follows_sequence_order(self):
        groups = {0: ["a"], 1: ["b"], 2: ["c"]}
        result = recommend({"a": 0.9}, groups)

        assert result.expand_index == 1

    def test_sort_key_picks_expansion_group(self):
        groups = {0: ["a"], 1: ["b1", "b2", "b3"], 2: ["c"]}
        result = recommend({"a": 0.9}, groups, sort_key=lambda s: s.total_count)

        assert result.expand_index == 2

    def test_sort_key_ties_keep_sequence_order(self):
        groups = {0: ["a"], 1: ["b"], 2: ["c"]}
        result = recommend({"a": 0.9}, groups, sort_key=lambda s: 0)

        assert result.expand_index == 1

    def test_all_started_nothing_to_expand(self):
        groups = {0: ["a"], 1: ["b"]}
        result = recommend({"a": 0.9, "b": 0.9}, groups)

        assert result.expand_index is None
        assert result.enabled == {0, 1}
        assert result.recommended == set()

    def test_seen_zero_automaticity_counts_as_started(self):
        groups = {0: ["a"], 1: ["b"]}
        result = recommend({"a": 0.0}, groups)

        assert result.enabled == {0}
        assert result.expand_index is None


class TestSummaries:
    """Tests for per-group progress counts."""

    def test_counts(self):
        summaries = summarize_groups(
            FakeAutomaticity({"a1": 0.9, "a2": 0.2}),
            [0, 1],
            lambda i: GROUPS[i],
            DEFAULT_CONFIG,
        )
        by_index = {s.index: s for s in summaries}

        assert by_index[0].mastered_count == 1
        assert by_index[0].due_count == 1
        assert by_index[0].unseen_count == 1
        assert by_index[0].work == pytest.approx(0.45)
        assert by_index[1].is_started is False
        assert by_index[1].work is None

    def test_sorted_by_outstanding_work(self):
        summaries = summarize_groups(
            FakeAutomaticity({"a1": 0.9, "a2": 0.9, "a3": 0.9}),
            [0, 1, 2],
            lambda i: GROUPS[i],
            DEFAULT_CONFIG,
        )
        assert [s.index for s in summaries] == [2, 1, 0]


def test_works_with_real_selector(selector):
    """The selector itself satisfies the automaticity source protocol."""
    selector.record_response("a1", 1000)
    selector.record_response("a2", 1000)

    groups = {0: ["a1", "a2"], 1: ["b1"]}
    result = compute_recommendations(selector, [0, 1], lambda i: groups[i], selector.config)

    assert result.expand_index == 1
