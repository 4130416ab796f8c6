"""
Automaticity levels for progress displays and heatmaps.
"""

from __future__ import annotations

from enum import Enum


class AutomaticityLevel(str, Enum):
    """Heatmap band for an automaticity score."""

    NO_DATA = "no_data"
    NEEDS_WORK = "needs_work"  # <= 20%
    FADING = "fading"  # > 20%
    GETTING_THERE = "getting_there"  # > 40%
    SOLID = "solid"  # > 60%
    AUTOMATIC = "automatic"  # > 80%

    @classmethod
    def from_score(cls, score: float | None) -> AutomaticityLevel:
        """
        Convert a 0-1 automaticity score (or None for unseen) to a level.
        """
        if score is None:
            return cls.NO_DATA
        if score > 0.8:
            return cls.AUTOMATIC
        elif score > 0.6:
            return cls.SOLID
        elif score > 0.4:
            return cls.GETTING_THERE
        elif score > 0.2:
            return cls.FADING
        else:
            return cls.NEEDS_WORK

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.replace("_", " ").capitalize()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            AutomaticityLevel.NO_DATA: "dim",
            AutomaticityLevel.NEEDS_WORK: "red",
            AutomaticityLevel.FADING: "dark_orange",
            AutomaticityLevel.GETTING_THERE: "yellow",
            AutomaticityLevel.SOLID: "chartreuse3",
            AutomaticityLevel.AUTOMATIC: "green",
        }[self]
