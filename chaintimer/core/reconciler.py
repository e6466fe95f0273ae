"""
Reconciler - merges a Torn API chain snapshot into the timer state.

The API is authoritative: an active snapshot replaces whatever the local
ticks produced since the previous one. Dedup against the raw timeout has
already happened in ``remote_sync`` by the time a snapshot gets here.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Tuple

from ..constants import CHAIN_DURATION_SECONDS, NETWORK_LATENCY_OFFSET_SECONDS
from .state import (EdgeState, Effect, FireAlarm, RemoteSnapshot,
                    SessionState)
from .thresholds import check_crossing

logger = logging.getLogger("chain.reconciler")


def compensate(raw_timeout: int, offset: int = NETWORK_LATENCY_OFFSET_SECONDS) -> int:
    """Subtract the reporting delay from an API timeout, never going below zero."""
    return max(0, raw_timeout - offset)


def apply_snapshot(state: SessionState, snapshot: RemoteSnapshot) -> Tuple[SessionState, List[Effect]]:
    """Apply one snapshot and return the new state plus any alarm request.

    Branches on chain lifecycle:
    - active (timeout > 0): countdown jumps to the compensated timeout and
      the crossing check runs against the last observed value
    - cooldown (timeout == 0, cooldown > 0): chain dropped or finished
    - no chain (current_hits == 0): back to the full duration, idle
    """
    state = replace(state, chain_count=snapshot.current_hits)
    timer = state.timer

    if snapshot.timeout_seconds > 0:
        compensated = compensate(snapshot.timeout_seconds)
        effects: List[Effect] = []
        if check_crossing(state.edge.last_observed_remaining, compensated, state.thresholds.values):
            effects.append(FireAlarm(remaining_seconds=compensated))
        new_state = replace(
            state,
            timer=replace(timer, remaining_seconds=compensated, is_running=True),
            edge=EdgeState(last_observed_remaining=compensated),
        )
        return new_state, effects

    if snapshot.cooldown_seconds > 0:
        logger.info(f"⛓️ Chain ended at {snapshot.current_hits} hits (cooldown {snapshot.cooldown_seconds}s)")
        return replace(
            state,
            timer=replace(timer, remaining_seconds=0, is_running=False),
            edge=EdgeState(),
        ), []

    if snapshot.current_hits == 0:
        return replace(
            state,
            timer=replace(timer, remaining_seconds=CHAIN_DURATION_SECONDS, is_running=False),
            edge=EdgeState(),
        ), []

    # Hits reported but neither timeout nor cooldown: nothing to reconcile
    logger.debug("Snapshot with hits but no timeout/cooldown ignored: %s", snapshot)
    return state, []
