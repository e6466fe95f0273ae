"""
Immutable data model for the chain timer engine.

Everything the engine knows lives in ``SessionState``; reducer steps return a
new instance instead of mutating. Events and effects are plain frozen
dataclasses so they can be compared in tests and logged as-is.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union

from ..constants import (CHAIN_DURATION_SECONDS, DEFAULT_ALARM_THRESHOLD,
                         SECONDARY_THRESHOLDS)


class TimerMode(str, Enum):
    """Where the countdown gets its truth from."""
    MANUAL = "manual"
    SYNCED = "synced"


@dataclass(frozen=True)
class TimerState:
    remaining_seconds: int = CHAIN_DURATION_SECONDS
    is_running: bool = False
    mode: TimerMode = TimerMode.MANUAL


@dataclass(frozen=True)
class EdgeState:
    """Remaining value the next crossing check is compared against (None = unset)."""
    last_observed_remaining: Optional[int] = None


@dataclass(frozen=True)
class RemoteSnapshot:
    """One chain reading from the Torn API."""
    current_hits: int
    timeout_seconds: int
    cooldown_seconds: int


@dataclass(frozen=True)
class ThresholdSet:
    """Configurable primary alarm point plus the fixed critical ones."""
    primary: int = DEFAULT_ALARM_THRESHOLD
    secondary: Tuple[int, ...] = SECONDARY_THRESHOLDS

    def __post_init__(self) -> None:
        for value in (self.primary, *self.secondary):
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"Thresholds must be positive integers, got {value!r}")

    @property
    def values(self) -> FrozenSet[int]:
        return frozenset((self.primary, *self.secondary))


@dataclass(frozen=True)
class SessionState:
    timer: TimerState = field(default_factory=TimerState)
    edge: EdgeState = field(default_factory=EdgeState)
    thresholds: ThresholdSet = field(default_factory=ThresholdSet)
    last_raw_timeout: Optional[int] = None
    # Latest current_hits applied in synced mode
    chain_count: Optional[int] = None

    @property
    def mode(self) -> TimerMode:
        return self.timer.mode

    @property
    def current_hits_if_synced(self) -> Optional[int]:
        if self.timer.mode is TimerMode.SYNCED:
            return self.chain_count
        return None


def initial_state(mode: TimerMode = TimerMode.MANUAL,
                  alarm_threshold: int = DEFAULT_ALARM_THRESHOLD) -> SessionState:
    """Build the state a fresh session starts with."""
    return SessionState(
        timer=TimerState(mode=mode),
        thresholds=ThresholdSet(primary=alarm_threshold),
    )


# ---- Events -----------------------------------------------------------------

@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class SnapshotReceived:
    snapshot: RemoteSnapshot


@dataclass(frozen=True)
class Start:
    pass


@dataclass(frozen=True)
class Reset:
    pass


@dataclass(frozen=True)
class Stop:
    pass


@dataclass(frozen=True)
class ModeChanged:
    mode: TimerMode


@dataclass(frozen=True)
class ThresholdChanged:
    primary: int


Event = Union[Tick, SnapshotReceived, Start, Reset, Stop, ModeChanged, ThresholdChanged]


# ---- Effects ----------------------------------------------------------------

@dataclass(frozen=True)
class FireAlarm:
    remaining_seconds: int


@dataclass(frozen=True)
class SilenceAlarm:
    pass


Effect = Union[FireAlarm, SilenceAlarm]
