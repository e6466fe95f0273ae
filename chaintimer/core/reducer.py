"""
Single entry point for state transitions.

``apply(state, event)`` returns ``(new_state, effects)``; the session owns the
state and executes the effects. Nothing here touches threads or I/O.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Tuple

from ..constants import CHAIN_DURATION_SECONDS
from . import clock, reconciler
from .remote_sync import accept_snapshot
from .state import (EdgeState, Effect, Event, ModeChanged, Reset,
                    SessionState, SilenceAlarm, SnapshotReceived, Start, Stop,
                    ThresholdChanged, Tick, TimerMode, TimerState)


def apply(state: SessionState, event: Event) -> Tuple[SessionState, List[Effect]]:
    if isinstance(event, Tick):
        return clock.tick(state)
    if isinstance(event, SnapshotReceived):
        return _apply_snapshot(state, event)
    if isinstance(event, Start):
        return clock.start(state)
    if isinstance(event, Reset):
        return clock.reset(state)
    if isinstance(event, Stop):
        return clock.stop(state)
    if isinstance(event, ModeChanged):
        return _switch_mode(state, event.mode)
    if isinstance(event, ThresholdChanged):
        return replace(state, thresholds=replace(state.thresholds, primary=event.primary)), []
    raise TypeError(f"Unknown event: {event!r}")


def _apply_snapshot(state: SessionState, event: SnapshotReceived) -> Tuple[SessionState, List[Effect]]:
    # A poll that was in flight when the user switched back to manual
    if state.timer.mode is not TimerMode.SYNCED:
        return state, []
    accepted = accept_snapshot(state, event.snapshot)
    if accepted is None:
        return state, []
    return reconciler.apply_snapshot(accepted, event.snapshot)


def _switch_mode(state: SessionState, mode: TimerMode) -> Tuple[SessionState, List[Effect]]:
    """Both directions start from a clean, idle timer with sync memory cleared."""
    if state.timer.mode is mode:
        return state, []
    new_state = replace(
        state,
        timer=TimerState(remaining_seconds=CHAIN_DURATION_SECONDS, is_running=False, mode=mode),
        edge=EdgeState(),
        last_raw_timeout=None,
        chain_count=None,
    )
    return new_state, [SilenceAlarm()]
