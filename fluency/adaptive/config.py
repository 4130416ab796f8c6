"""
Adaptive model configuration.

AdaptiveConfig is immutable: a running engine never edits thresholds in
place. Recalibration builds a brand-new object (see calibration.py) and the
engine swaps it in wholesale via replace_config().

Absolute time constants are expressed against an assumed 1000 ms motor
baseline, so scaling to a measured baseline is a single multiplication.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from fluency.errors import InvalidConfig

# Baseline the default time constants were tuned against
REFERENCE_BASELINE_MS = 1000.0

# Fields measured in milliseconds; these scale with the motor baseline
TIME_CONSTANT_FIELDS = (
    "min_time",
    "max_response_time",
    "automaticity_target",
    "self_correction_threshold",
)


class AdaptiveConfig(BaseModel):
    """Thresholds and tuning constants for the memory model and selector."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Timing (ms)
    min_time: float = Field(default=1000, gt=0)
    max_response_time: float = Field(default=9000, gt=0)
    automaticity_target: float = Field(default=3000, gt=0)
    self_correction_threshold: float = Field(default=1500, gt=0)

    # Mastery thresholds (0-1)
    automaticity_threshold: float = Field(default=0.5, ge=0, le=1)
    expansion_threshold: float = Field(default=0.7, ge=0, le=1)
    recall_threshold: float = Field(default=0.5, ge=0, le=1)

    # Selection
    unseen_boost: float = Field(default=3.0, gt=0)
    ewma_alpha: float = Field(default=0.3, gt=0, le=1)
    max_stored_times: int = Field(default=10, ge=1)

    # Forgetting model (hours)
    initial_stability: float = Field(default=4.0, gt=0)
    min_stability: float = Field(default=1.0, gt=0)
    max_stability: float = Field(default=336.0, gt=0)
    stability_growth_base: float = Field(default=2.0, gt=1)
    speed_bonus_max: float = Field(default=1.5, ge=1)
    streak_damping: float = Field(default=0.25, ge=0)
    stability_decay_on_wrong: float = Field(default=0.3, gt=0, lt=1)

    @model_validator(mode="after")
    def _check_ordering(self) -> AdaptiveConfig:
        if self.min_time >= self.automaticity_target:
            raise ValueError("min_time must be below automaticity_target")
        if self.min_time > self.max_response_time:
            raise ValueError("min_time must not exceed max_response_time")
        if not self.min_stability <= self.initial_stability <= self.max_stability:
            raise ValueError(
                "stabilities must satisfy min_stability <= initial_stability <= max_stability"
            )
        return self

    @classmethod
    def create(cls, **values: Any) -> AdaptiveConfig:
        """Build a config, raising InvalidConfig instead of pydantic's error."""
        try:
            return cls(**values)
        except ValidationError as e:
            raise InvalidConfig(str(e)) from e

    def replace(self, **changes: Any) -> AdaptiveConfig:
        """Return a new validated config with ``changes`` applied."""
        return self.create(**{**self.model_dump(), **changes})

    def scaled_for_responses(self, response_count: int) -> AdaptiveConfig:
        """
        Config for an item answered with several responses (e.g. every note of a chord).

        The time constants are multiplied by ``response_count`` so the speed
        curve, clamps and self-correction keep their ratios. Counts of 1 or
        less return this config unchanged.
        """
        if response_count <= 1:
            return self
        return self.replace(
            **{name: getattr(self, name) * response_count for name in TIME_CONSTANT_FIELDS}
        )

    def time_ratios(self) -> dict[str, float]:
        """Each time constant as a multiple of the reference baseline."""
        return {
            name: getattr(self, name) / REFERENCE_BASELINE_MS
            for name in TIME_CONSTANT_FIELDS
        }


DEFAULT_CONFIG = AdaptiveConfig()


def load_config(settings: Any = None) -> AdaptiveConfig:
    """
    Build the startup configuration from application settings.

    Applies FLUENCY_* overrides on top of the defaults, then rescales to a
    previously stored motor baseline if one is configured.

    Args:
        settings: Settings instance (defaults to config.get_settings())

    Returns:
        AdaptiveConfig ready to hand to the selector
    """
    if settings is None:
        from config import get_settings

        settings = get_settings()

    cfg = DEFAULT_CONFIG.replace(**settings.get_adaptive_config())

    if settings.motor_baseline_ms:
        from fluency.adaptive.calibration import derive_scaled_config

        cfg = derive_scaled_config(
            settings.motor_baseline_ms, cfg, margin_factor=settings.calibration_margin
        )
    return cfg
