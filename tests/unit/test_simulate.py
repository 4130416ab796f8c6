"""
Unit tests for the forgetting-model simulation tables.
"""

from fluency.adaptive.config import DEFAULT_CONFIG
from fluency.cli.simulate import (
    TRAJECTORIES,
    Trajectory,
    automaticity_table,
    fmt_hours,
    fmt_recall,
    recall_decay_table,
    simulate_trajectory,
    stability_trajectory_table,
)


class TestFormatting:
    def test_fmt_recall(self):
        assert fmt_recall(None) == "-"
        assert fmt_recall(0.001) == "~0"
        assert fmt_recall(0.5) == "0.50"

    def test_fmt_hours(self):
        assert fmt_hours(4) == "4.0h"
        assert fmt_hours(36) == "1.5d"


class TestTables:
    def test_recall_decay_half_life_cell(self):
        headers, rows = recall_decay_table()
        # S=4h row, 4h column
        assert rows[0][headers.index("4h")] == "0.50"

    def test_trajectory_is_non_decreasing(self):
        stabilities = simulate_trajectory(Trajectory("fast", 24, 1200, sessions=6), DEFAULT_CONFIG)

        assert len(stabilities) == 6
        assert stabilities == sorted(stabilities)
        assert stabilities[-1] <= DEFAULT_CONFIG.max_stability

    def test_fast_learner_outgrows_slow(self):
        fast = simulate_trajectory(Trajectory("fast", 24, 1200, sessions=4), DEFAULT_CONFIG)
        slow = simulate_trajectory(Trajectory("slow", 24, 6000, sessions=4), DEFAULT_CONFIG)
        assert fast[-1] > slow[-1]

    def test_stability_table_shape(self):
        headers, rows = stability_trajectory_table(DEFAULT_CONFIG)

        assert len(rows) == len(TRAJECTORIES)
        assert all(len(row) == len(headers) for row in rows)

    def test_automaticity_table_uses_config(self):
        headers, rows = automaticity_table(DEFAULT_CONFIG)

        target_row = next(row for row in rows if row[0] == "3000ms")
        assert target_row[1] == "0.50"
        assert target_row[headers.index("R=1.0")] == "0.50"
