"""
Unit tests for the adaptive selector.

Tests:
- Weighted draw helper (zero weights, uniform fallback)
- Weight formula for unseen / stale / slow items
- No immediate repeats and the singleton exception
- Per-instance session state
"""

import random

import pytest

from fluency.adaptive.config import DEFAULT_CONFIG
from fluency.adaptive.selector import AdaptiveSelector, compute_weight, select_weighted
from fluency.errors import EmptyPool
from fluency.storage.memory import MemoryStorage


class TestSelectWeighted:
    """Tests for the weighted random draw."""

    def test_empty_items_raise(self):
        with pytest.raises(EmptyPool):
            select_weighted([], [], 0.5)

    def test_rand_maps_onto_cumulative_weights(self):
        items = ["a", "b", "c"]
        weights = [1.0, 2.0, 1.0]
        assert select_weighted(items, weights, 0.0) == "a"
        assert select_weighted(items, weights, 0.3) == "b"
        assert select_weighted(items, weights, 0.74) == "b"
        assert select_weighted(items, weights, 0.99) == "c"

    def test_zero_weight_never_selected(self):
        items = ["prev", "x", "y"]
        weights = [0.0, 1.0, 1.0]
        for rand in (0.0, 0.25, 0.5, 0.75, 0.999999):
            assert select_weighted(items, weights, rand) != "prev"

    def test_all_zero_weights_draw_uniformly(self):
        items = ["a", "b", "c", "d"]
        weights = [0.0] * 4
        assert select_weighted(items, weights, 0.0) == "a"
        assert select_weighted(items, weights, 0.6) == "c"
        assert select_weighted(items, weights, 0.9999) == "d"


class TestComputeWeight:
    """Tests for the selection weight formula."""

    def test_unseen_gets_boost(self):
        assert compute_weight(None, None, DEFAULT_CONFIG) == DEFAULT_CONFIG.unseen_boost

    def test_fresh_fast_item_weighs_least(self, model):
        record = model.record_response("C", 1000)
        assert compute_weight(record, 1.0, DEFAULT_CONFIG) == pytest.approx(1.0)

    def test_stale_and_slow_items_weigh_more(self, model):
        fast = model.record_response("fast", 1000)
        slow = model.record_response("slow", 4000)

        assert compute_weight(slow, 1.0, DEFAULT_CONFIG) > compute_weight(fast, 1.0, DEFAULT_CONFIG)
        assert compute_weight(fast, 0.2, DEFAULT_CONFIG) > compute_weight(fast, 1.0, DEFAULT_CONFIG)

    def test_never_correct_counts_as_fully_stale(self, model):
        record = model.record_response("C", 1000, correct=False)
        assert compute_weight(record, None, DEFAULT_CONFIG) == pytest.approx(2.0)


class TestSelectNext:
    """Tests for AdaptiveSelector.select_next."""

    def test_empty_pool_raises(self, selector):
        with pytest.raises(EmptyPool):
            selector.select_next([])

    def test_singleton_repeats(self, selector):
        assert selector.select_next(["x"]) == "x"
        assert selector.select_next(["x"]) == "x"

    def test_duplicate_ids_collapse_to_singleton(self, selector):
        assert selector.select_next(["x", "x"]) == "x"
        assert selector.select_next(["x", "x"]) == "x"

    def test_no_repeats_over_1000_trials(self, selector, sample_items):
        previous = None
        repeats = 0
        for _ in range(1000):
            item = selector.select_next(sample_items)
            if item == previous:
                repeats += 1
            previous = item
        assert repeats == 0

    def test_no_repeats_with_two_items_and_history(self, selector, clock):
        for item_id, latency in (("a", 1000), ("b", 8000)):
            selector.record_response(item_id, latency)
        previous = None
        for _ in range(1000):
            item = selector.select_next(["a", "b"])
            assert item != previous
            previous = item
            selector.record_response(item, 1500)
            clock.advance(hours=1)

    def test_result_always_from_pool(self, selector, sample_items):
        for _ in range(200):
            assert selector.select_next(sample_items) in sample_items

    def test_unseen_items_favoured(self, storage, clock):
        selector = AdaptiveSelector(storage, rng=random.Random(7), clock=clock)
        selector.record_response("known", 1000)

        picks = [selector.select_next(["known", "new1", "new2"]) for _ in range(600)]
        # known is excluded after it is picked and weighs 1 vs 3 for each new item
        assert picks.count("known") < picks.count("new1")
        assert picks.count("known") < picks.count("new2")

    def test_seeded_rng_is_reproducible(self, sample_items, clock):
        first = AdaptiveSelector(MemoryStorage(), rng=random.Random(99), clock=clock)
        second = AdaptiveSelector(MemoryStorage(), rng=random.Random(99), clock=clock)
        assert [first.select_next(sample_items) for _ in range(50)] == [
            second.select_next(sample_items) for _ in range(50)
        ]

    def test_sessions_do_not_share_previous_pick(self, storage, clock):
        one = AdaptiveSelector(storage, rng=random.Random(1), clock=clock)
        two = AdaptiveSelector(storage, rng=random.Random(1), clock=clock)

        picked = one.select_next(["a", "b"])
        assert two.previous_item_id is None
        assert one.previous_item_id == picked

    def test_reset_forgets_previous_pick(self, selector):
        selector.select_next(["a", "b"])
        selector.reset()
        assert selector.previous_item_id is None


class TestConfigSwap:
    """Tests for wholesale config replacement."""

    def test_replace_config_swaps_object(self, selector):
        new_config = DEFAULT_CONFIG.replace(unseen_boost=10.0)
        selector.replace_config(new_config)

        assert selector.config is new_config
        assert selector.get_weight("never-seen") == 10.0

    def test_default_config_untouched(self, selector):
        selector.replace_config(DEFAULT_CONFIG.replace(unseen_boost=10.0))
        assert DEFAULT_CONFIG.unseen_boost == 3.0


class TestResponseCount:
    """Multi-response items are weighed against scaled time constants."""

    def test_chord_weighed_against_scaled_min_time(self, storage, rng, clock):
        counts = {"Cmaj": 3}
        selector = AdaptiveSelector(
            storage, rng=rng, clock=clock, response_count=lambda item_id: counts.get(item_id, 1)
        )
        selector.record_response("Cmaj", 3000)
        selector.record_response("C", 3000)

        assert selector.get_weight("Cmaj") == pytest.approx(1.0)
        assert selector.get_weight("C") == pytest.approx(3.0)

    def test_without_counts_every_item_is_single(self, selector):
        selector.record_response("Cmaj", 3000)
        assert selector.get_weight("Cmaj") == pytest.approx(3.0)
