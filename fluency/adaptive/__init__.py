"""
Adaptive Practice Engine.

Provides:
- Memory model: per-item EWMA latency + forgetting-curve stability
- Selector: weighted next-item selection with no immediate repeats
- Calibration: motor baseline measurement and threshold scaling
- Recommendations: consolidate-before-expanding group suggestions
- Deadlines: per-item response time limit staircase
"""

from fluency.adaptive.calibration import (
    CalibrationResult,
    SpeedBand,
    calibrate,
    calibration_thresholds,
    derive_scaled_config,
    measure_baseline,
)
from fluency.adaptive.config import DEFAULT_CONFIG, AdaptiveConfig, load_config
from fluency.adaptive.deadline import (
    DEFAULT_DEADLINE_CONFIG,
    DeadlineConfig,
    DeadlineTracker,
)
from fluency.adaptive.levels import AutomaticityLevel
from fluency.adaptive.memory_model import ItemRecord, MemoryModel
from fluency.adaptive.recommendations import (
    GroupSummary,
    RecommendationResult,
    compute_recommendations,
    summarize_groups,
)
from fluency.adaptive.selector import AdaptiveSelector

__all__ = [
    # Config
    "AdaptiveConfig",
    "DEFAULT_CONFIG",
    "load_config",
    # Memory model
    "ItemRecord",
    "MemoryModel",
    # Selection
    "AdaptiveSelector",
    # Calibration
    "CalibrationResult",
    "SpeedBand",
    "calibrate",
    "calibration_thresholds",
    "derive_scaled_config",
    "measure_baseline",
    # Recommendations
    "GroupSummary",
    "RecommendationResult",
    "compute_recommendations",
    "summarize_groups",
    # Deadlines
    "DeadlineConfig",
    "DeadlineTracker",
    "DEFAULT_DEADLINE_CONFIG",
    # Display
    "AutomaticityLevel",
]
