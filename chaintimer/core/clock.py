"""
Local countdown: one-second ticks and the manual start/reset/stop commands.

All functions are pure: ``(state) -> (new_state, effects)``.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Tuple

from ..constants import CHAIN_DURATION_SECONDS
from .state import (EdgeState, Effect, FireAlarm, SessionState, SilenceAlarm,
                    TimerMode)
from .thresholds import check_crossing

StepResult = Tuple[SessionState, List[Effect]]


def tick(state: SessionState) -> StepResult:
    """Advance the countdown by one second.

    In manual mode hitting zero stops the timer; in synced mode the next API
    snapshot decides, so ``is_running`` is left alone.
    """
    timer = state.timer
    if not timer.is_running:
        return state, []

    remaining = max(0, timer.remaining_seconds - 1)
    is_running = timer.is_running
    if remaining == 0 and timer.mode is TimerMode.MANUAL:
        is_running = False

    effects: List[Effect] = []
    if check_crossing(state.edge.last_observed_remaining, remaining, state.thresholds.values):
        effects.append(FireAlarm(remaining_seconds=remaining))

    new_state = replace(
        state,
        timer=replace(timer, remaining_seconds=remaining, is_running=is_running),
        edge=EdgeState(last_observed_remaining=remaining),
    )
    return new_state, effects


def start(state: SessionState) -> StepResult:
    if state.timer.mode is not TimerMode.MANUAL or state.timer.is_running:
        return state, []
    return replace(state, timer=replace(state.timer, is_running=True)), []


def reset(state: SessionState) -> StepResult:
    """Register a hit: full duration again and every threshold re-armed."""
    if state.timer.mode is not TimerMode.MANUAL:
        return state, []
    new_state = replace(
        state,
        timer=replace(state.timer, remaining_seconds=CHAIN_DURATION_SECONDS, is_running=True),
        edge=EdgeState(),
    )
    return new_state, [SilenceAlarm()]


def stop(state: SessionState) -> StepResult:
    if state.timer.mode is not TimerMode.MANUAL:
        return state, []
    return replace(state, timer=replace(state.timer, is_running=False)), [SilenceAlarm()]
