"""
Tests for merging Torn API snapshots into the timer state.
"""

from dataclasses import replace

import pytest

from chaintimer.core.reconciler import apply_snapshot, compensate
from chaintimer.core.state import (EdgeState, FireAlarm, TimerMode,
                                   TimerState, initial_state)
from chaintimer.core.status import TimerStatus, classify

from .conftest import snap


def synced(remaining=300, is_running=False, previous=None):
    state = initial_state(TimerMode.SYNCED)
    return replace(
        state,
        timer=TimerState(remaining_seconds=remaining, is_running=is_running, mode=TimerMode.SYNCED),
        edge=EdgeState(last_observed_remaining=previous),
    )


def status_of(state):
    return classify(state.timer.is_running, state.timer.remaining_seconds,
                    state.current_hits_if_synced, state.thresholds.primary)


class TestCompensate:

    @pytest.mark.parametrize("raw,expected", [(287, 285), (3, 1), (2, 0), (1, 0), (0, 0)])
    def test_floored_at_zero(self, raw, expected):
        assert compensate(raw) == expected


class TestActiveChain:
    """timeout > 0: the API value replaces the local countdown."""

    def test_jumps_to_compensated_timeout(self):
        state, effects = apply_snapshot(synced(), snap(1250, 287))
        assert state.timer.remaining_seconds == 285
        assert state.timer.is_running is True
        assert state.edge.last_observed_remaining == 285
        assert state.chain_count == 1250
        assert effects == []

    def test_first_snapshot_below_threshold_fires(self):
        _, effects = apply_snapshot(synced(), snap(10, 42))
        assert effects == [FireAlarm(remaining_seconds=40)]

    def test_crossing_against_last_tick_value(self):
        state = synced(remaining=62, is_running=True, previous=62)
        _, effects = apply_snapshot(state, snap(10, 52))
        assert effects == [FireAlarm(remaining_seconds=50)]

    def test_multi_threshold_jump_fires_once(self):
        state = synced(remaining=61, is_running=True, previous=61)
        _, effects = apply_snapshot(state, snap(10, 6))
        assert effects == [FireAlarm(remaining_seconds=4)]

    def test_raw_one_compensates_to_zero(self):
        state, _ = apply_snapshot(synced(previous=100), snap(10, 1))
        assert state.timer.remaining_seconds == 0
        assert state.timer.is_running is True

    def test_hit_refills_without_alarm(self):
        state = synced(remaining=20, is_running=True, previous=20)
        _, effects = apply_snapshot(state, snap(11, 300))
        assert effects == []


class TestChainEnded:

    def test_scenario_b_cooldown_means_dropped(self):
        state = synced(remaining=40, is_running=True, previous=40)
        state, effects = apply_snapshot(state, snap(5, 0, 120))
        assert state.timer.remaining_seconds == 0
        assert state.timer.is_running is False
        assert state.edge == EdgeState()
        assert effects == []
        assert status_of(state) is TimerStatus.DROPPED

    def test_scenario_c_no_chain(self):
        state = synced(remaining=40, is_running=True, previous=40)
        state, effects = apply_snapshot(state, snap(0, 0, 0))
        assert state.timer.remaining_seconds == 300
        assert state.timer.is_running is False
        assert state.edge == EdgeState()
        assert effects == []
        assert status_of(state) is TimerStatus.NO_CHAIN

    def test_hits_without_timeout_or_cooldown_is_noop(self):
        state = synced(remaining=40, is_running=True, previous=40)
        new_state, effects = apply_snapshot(state, snap(7, 0, 0))
        assert new_state.timer == state.timer
        assert new_state.edge == state.edge
        assert new_state.chain_count == 7
        assert effects == []
