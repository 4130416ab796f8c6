"""
Motor baseline calibration and threshold scaling.

A fixed millisecond threshold conflates how fast someone can physically
respond with how well they know the item. Calibration measures the learner's
raw reaction time on a recall-free reaction test, then rescales every absolute time
constant so that "automatic" means "as fast as this learner can go" on any
input device.

The default config assumes a 1000 ms baseline; each time constant is a fixed
ratio of that (min_time 1.0x, self-correction 1.5x, automaticity target 3.0x,
max response 9.0x).
"""

from __future__ import annotations

import math
import statistics
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from fluency.adaptive.config import (
    DEFAULT_CONFIG,
    REFERENCE_BASELINE_MS,
    TIME_CONSTANT_FIELDS,
    AdaptiveConfig,
)
from fluency.errors import InsufficientSamples, InvalidInput

# First taps are slower while the learner orients to the task
WARMUP_SAMPLES = 2
MIN_USABLE_SAMPLES = 3


@dataclass(frozen=True)
class SpeedBand:
    """A labelled latency range relative to the motor baseline."""

    label: str
    max_ms: int | None  # None = open-ended
    meaning: str


@dataclass(frozen=True)
class CalibrationResult:
    """Outcome of a calibration run."""

    baseline_ms: float
    config: AdaptiveConfig
    thresholds: list[SpeedBand]


# (label, multiple of baseline, meaning)
SPEED_BANDS = [
    ("Automatic", 1.5, "Fully memorized - instant recall"),
    ("Good", 3.0, "Solid recall, minor hesitation"),
    ("Developing", 4.5, "Working on it - needs practice"),
    ("Slow", 6.0, "Significant hesitation"),
    ("Very slow", None, "Not yet learned"),
]


def measure_baseline(samples: Sequence[float], warmup: int = WARMUP_SAMPLES) -> float:
    """
    Compute the motor baseline from an ordered reaction-time run.

    Args:
        samples: Raw reaction-time latencies (ms) in the order collected
        warmup: Leading samples to discard

    Returns:
        Median of the samples after warm-up

    Raises:
        InvalidInput: If a sample is negative, NaN or infinite
        InsufficientSamples: If fewer than 3 samples remain after warm-up
    """
    for sample in samples:
        if isinstance(sample, bool) or not isinstance(sample, (int, float)):
            raise InvalidInput(f"Calibration sample must be a number, got {sample!r}")
        if math.isnan(sample) or math.isinf(sample) or sample < 0:
            raise InvalidInput(f"Calibration sample must be finite and non-negative, got {sample!r}")

    usable = list(samples)[warmup:]
    if len(usable) < MIN_USABLE_SAMPLES:
        raise InsufficientSamples(required=MIN_USABLE_SAMPLES, received=len(usable))

    baseline = float(statistics.median(usable))
    logger.info(f"Motor baseline {baseline:.0f}ms from {len(usable)} samples")
    return baseline


def derive_scaled_config(
    baseline_ms: float,
    default_config: AdaptiveConfig = DEFAULT_CONFIG,
    margin_factor: float = 1.0,
) -> AdaptiveConfig:
    """
    Scale every absolute time constant to a measured baseline.

    Pure: ``default_config`` is never modified, a new config is returned.

    Args:
        baseline_ms: Measured motor baseline
        default_config: Config whose time constants assume a 1000 ms baseline
        margin_factor: Extra headroom on min_time to absorb calibration noise (>= 1)

    Returns:
        New AdaptiveConfig with scaled time constants
    """
    if not isinstance(baseline_ms, (int, float)) or not math.isfinite(baseline_ms) or baseline_ms <= 0:
        raise InvalidInput(f"Baseline must be a positive number, got {baseline_ms!r}")
    if margin_factor < 1:
        raise InvalidInput(f"Margin factor must be >= 1, got {margin_factor!r}")

    scale = baseline_ms / REFERENCE_BASELINE_MS
    scaled = {
        name: round(getattr(default_config, name) * scale)
        for name in TIME_CONSTANT_FIELDS
    }
    scaled["min_time"] = round(default_config.min_time * scale * margin_factor)

    if min(scaled.values()) < 1:
        raise InvalidInput(f"Baseline {baseline_ms!r}ms is too small to scale the time constants")
    # A generous margin must not push min_time past the target
    if scaled["min_time"] >= scaled["automaticity_target"]:
        raise InvalidInput(
            f"Margin {margin_factor} leaves no room between min_time and automaticity_target"
        )
    return default_config.replace(**scaled)


def calibration_thresholds(baseline_ms: float) -> list[SpeedBand]:
    """Human-readable speed bands for the calibration results screen."""
    return [
        SpeedBand(
            label=label,
            max_ms=round(baseline_ms * multiple) if multiple is not None else None,
            meaning=meaning,
        )
        for label, multiple, meaning in SPEED_BANDS
    ]


def calibrate(
    samples: Sequence[float],
    default_config: AdaptiveConfig = DEFAULT_CONFIG,
    margin_factor: float = 1.0,
    warmup: int = WARMUP_SAMPLES,
) -> CalibrationResult:
    """Measure a baseline and derive the matching config in one step."""
    baseline = measure_baseline(samples, warmup=warmup)
    return CalibrationResult(
        baseline_ms=baseline,
        config=derive_scaled_config(baseline, default_config, margin_factor),
        thresholds=calibration_thresholds(baseline),
    )
