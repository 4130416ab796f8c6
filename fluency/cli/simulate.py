"""
Simulation tables for tuning the forgetting model.

Each builder returns (headers, rows) of preformatted strings so the CLI can
render them with rich and tests can inspect them without a terminal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from fluency.adaptive.config import AdaptiveConfig
from fluency.adaptive.memory_model import (
    MemoryModel,
    compute_automaticity,
    compute_recall,
    compute_speed_score,
)
from fluency.storage.memory import MemoryStorage

Table = tuple[list[str], list[list[str]]]

STABILITY_VALUES = [("S=4h (new)", 4), ("S=16h", 16), ("S=96h (4d)", 96), ("S=672h (28d)", 672)]
TIME_POINTS = [("1h", 1), ("4h", 4), ("12h", 12), ("1d", 24), ("3d", 72), ("7d", 168), ("30d", 720)]
EWMA_VALUES = [1000, 1500, 2000, 3000, 4500, 6000]
RECALL_VALUES = [1.0, 0.8, 0.5, 0.3, 0.1]


@dataclass(frozen=True)
class Trajectory:
    """A learner practicing one item at a fixed interval."""

    label: str
    interval_hours: float
    response_ms: float
    sessions: int = 10


TRAJECTORIES = [
    Trajectory("Daily, fast (1200ms)", 24, 1200),
    Trajectory("Daily, medium (3000ms)", 24, 3000),
    Trajectory("Daily, slow (6000ms)", 24, 6000),
    Trajectory("Every-other-day, fast", 48, 1200),
]


def fmt_recall(value: float | None) -> str:
    if value is None:
        return "-"
    if value < 0.005:
        return "~0"
    return f"{value:.2f}"


def fmt_hours(hours: float) -> str:
    if hours < 24:
        return f"{hours:.1f}h"
    return f"{hours / 24:.1f}d"


def recall_decay_table() -> Table:
    """P(recall) = 2^(-elapsed/stability) for a grid of stabilities and gaps."""
    headers = [""] + [label for label, _ in TIME_POINTS]
    rows = [
        [label] + [fmt_recall(compute_recall(stability, hours)) for _, hours in TIME_POINTS]
        for label, stability in STABILITY_VALUES
    ]
    return headers, rows


def simulate_trajectory(trajectory: Trajectory, cfg: AdaptiveConfig) -> list[float]:
    """
    Stability after each practice session, driving a real MemoryModel.

    Every session is one correct answer at the trajectory's response time.
    """
    now = datetime(2024, 1, 1, tzinfo=UTC)
    clock_state = {"now": now}
    model = MemoryModel(MemoryStorage(), cfg, clock=lambda: clock_state["now"])

    stabilities = []
    for _ in range(trajectory.sessions):
        record = model.record_response("item", trajectory.response_ms, correct=True)
        stabilities.append(record.stability)
        clock_state["now"] += timedelta(hours=trajectory.interval_hours)
    return stabilities


def stability_trajectory_table(cfg: AdaptiveConfig) -> Table:
    """Stability growth over repeated sessions for the standard trajectories."""
    sessions = max(t.sessions for t in TRAJECTORIES)
    headers = ["Trajectory"] + [f"#{n}" for n in range(1, sessions + 1)]
    rows = [
        [t.label] + [fmt_hours(s) for s in simulate_trajectory(t, cfg)]
        for t in TRAJECTORIES
    ]
    return headers, rows


def automaticity_table(cfg: AdaptiveConfig) -> Table:
    """Automaticity (recall x speed score) for a grid of EWMA and recall values."""
    headers = ["EWMA", "speed"] + [f"R={r:.1f}" for r in RECALL_VALUES]
    rows = []
    for ewma in EWMA_VALUES:
        speed = compute_speed_score(ewma, cfg)
        rows.append(
            [f"{ewma}ms", f"{speed:.2f}"]
            + [f"{compute_automaticity(r, speed):.2f}" for r in RECALL_VALUES]
        )
    return headers, rows
