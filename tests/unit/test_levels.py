"""
Unit tests for automaticity levels.
"""

import pytest

from fluency.adaptive.levels import AutomaticityLevel


class TestAutomaticityLevel:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (None, AutomaticityLevel.NO_DATA),
            (0.0, AutomaticityLevel.NEEDS_WORK),
            (0.2, AutomaticityLevel.NEEDS_WORK),
            (0.21, AutomaticityLevel.FADING),
            (0.5, AutomaticityLevel.GETTING_THERE),
            (0.7, AutomaticityLevel.SOLID),
            (0.81, AutomaticityLevel.AUTOMATIC),
            (1.0, AutomaticityLevel.AUTOMATIC),
        ],
    )
    def test_from_score(self, score, expected):
        assert AutomaticityLevel.from_score(score) == expected

    def test_display_name(self):
        assert AutomaticityLevel.NEEDS_WORK.display_name == "Needs work"
        assert AutomaticityLevel.NO_DATA.display_name == "No data"

    def test_every_level_has_a_color(self):
        assert all(level.color for level in AutomaticityLevel)

    def test_is_str_enum(self):
        assert AutomaticityLevel.SOLID == "solid"
