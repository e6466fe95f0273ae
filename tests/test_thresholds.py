"""
Tests for edge-triggered threshold crossing detection.
"""

import pytest

from chaintimer.core.thresholds import check_crossing, crossed

THRESHOLDS = frozenset({60, 15, 10, 5})


class TestCrossed:
    """Single-threshold edge semantics."""

    @pytest.mark.parametrize("previous,current,expected", [
        (61, 60, True),
        (60, 59, False),
        (100, 61, False),
        (61, 0, True),
        (59, 70, False),
    ])
    def test_transition(self, previous, current, expected):
        assert crossed(previous, current, 60) is expected

    def test_first_observation_at_or_below_fires(self):
        assert crossed(None, 60, 60) is True
        assert crossed(None, 12, 60) is True

    def test_first_observation_above_does_not_fire(self):
        assert crossed(None, 61, 60) is False


class TestCheckCrossing:
    """Any-of semantics over the whole threshold set."""

    def test_multi_threshold_drop_reports_once(self):
        # 61 -> 4 crosses 60, 15, 10 and 5 in one step
        assert check_crossing(61, 4, THRESHOLDS) is True

    def test_nothing_crossed_between_thresholds(self):
        assert check_crossing(40, 30, THRESHOLDS) is False

    def test_secondary_thresholds_checked_after_primary(self):
        assert check_crossing(60, 59, THRESHOLDS) is False
        assert check_crossing(16, 15, THRESHOLDS) is True
        assert check_crossing(11, 10, THRESHOLDS) is True
        assert check_crossing(6, 5, THRESHOLDS) is True

    def test_rising_value_never_fires(self):
        assert check_crossing(4, 285, THRESHOLDS) is False

    def test_empty_threshold_set(self):
        assert check_crossing(61, 0, []) is False
