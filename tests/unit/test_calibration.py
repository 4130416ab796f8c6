"""
Unit tests for motor baseline calibration.
"""

import pytest

from fluency.adaptive.calibration import (
    CalibrationResult,
    calibrate,
    calibration_thresholds,
    derive_scaled_config,
    measure_baseline,
)
from fluency.adaptive.config import DEFAULT_CONFIG, TIME_CONSTANT_FIELDS
from fluency.errors import InsufficientSamples, InvalidInput


class TestMeasureBaseline:
    """Tests for baseline measurement."""

    def test_median_after_warmup(self):
        # Warm-up taps 2000 and 1800 are discarded
        assert measure_baseline([2000, 1800, 900, 700, 800]) == 800

    def test_even_count_median(self):
        assert measure_baseline([5000, 5000, 600, 800, 900, 1000]) == 850

    def test_custom_warmup(self):
        assert measure_baseline([100, 200, 300], warmup=0) == 200

    def test_too_few_samples(self):
        with pytest.raises(InsufficientSamples) as exc_info:
            measure_baseline([900, 850, 800, 790])

        assert exc_info.value.required == 3
        assert exc_info.value.received == 2

    def test_empty_samples(self):
        with pytest.raises(InsufficientSamples):
            measure_baseline([])

    @pytest.mark.parametrize("bad", [-5, float("nan"), float("inf"), "800"])
    def test_invalid_sample(self, bad):
        with pytest.raises(InvalidInput):
            measure_baseline([900, 900, 800, bad, 850])


class TestDeriveScaledConfig:
    """Tests for threshold scaling."""

    def test_double_baseline_doubles_target(self):
        scaled = derive_scaled_config(2000, DEFAULT_CONFIG)
        assert scaled.automaticity_target == 2 * DEFAULT_CONFIG.automaticity_target

    def test_every_time_constant_scales(self):
        scaled = derive_scaled_config(1500, DEFAULT_CONFIG)
        for name in TIME_CONSTANT_FIELDS:
            assert getattr(scaled, name) == round(getattr(DEFAULT_CONFIG, name) * 1.5)

    def test_non_time_fields_unchanged(self):
        scaled = derive_scaled_config(700, DEFAULT_CONFIG)
        assert scaled.initial_stability == DEFAULT_CONFIG.initial_stability
        assert scaled.automaticity_threshold == DEFAULT_CONFIG.automaticity_threshold

    def test_default_config_not_mutated(self):
        derive_scaled_config(2500, DEFAULT_CONFIG)
        assert DEFAULT_CONFIG.automaticity_target == 3000

    def test_margin_only_affects_min_time(self):
        scaled = derive_scaled_config(1000, DEFAULT_CONFIG, margin_factor=1.2)
        assert scaled.min_time == 1200
        assert scaled.automaticity_target == 3000

    def test_margin_below_one_rejected(self):
        with pytest.raises(InvalidInput):
            derive_scaled_config(1000, DEFAULT_CONFIG, margin_factor=0.8)

    def test_margin_past_target_rejected(self):
        with pytest.raises(InvalidInput):
            derive_scaled_config(1000, DEFAULT_CONFIG, margin_factor=3.5)

    @pytest.mark.parametrize("baseline", [0, -100, float("nan")])
    def test_invalid_baseline(self, baseline):
        with pytest.raises(InvalidInput):
            derive_scaled_config(baseline, DEFAULT_CONFIG)

    def test_baseline_rounding_to_zero_rejected(self):
        with pytest.raises(InvalidInput, match="too small"):
            derive_scaled_config(0.3, DEFAULT_CONFIG)

    def test_tiny_baseline_still_scales(self):
        cfg = derive_scaled_config(2, DEFAULT_CONFIG)

        assert cfg.min_time == 2
        assert cfg.automaticity_target == 6


class TestCalibrate:
    """Tests for the one-step calibration helper."""

    def test_returns_baseline_config_and_bands(self):
        result = calibrate([1400, 1100, 820, 790, 860, 900, 810])

        assert isinstance(result, CalibrationResult)
        assert result.baseline_ms == 820
        assert result.config.min_time == 820
        assert result.config.automaticity_target == 2460
        assert [band.label for band in result.thresholds][0] == "Automatic"

    def test_bands_scale_with_baseline(self):
        bands = calibration_thresholds(1000)
        assert [band.max_ms for band in bands] == [1500, 3000, 4500, 6000, None]
