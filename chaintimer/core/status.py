"""Display status derivation and formatting helpers."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from ..constants import CRITICAL_THRESHOLD_SECONDS


class TimerStatus(str, Enum):
    NO_CHAIN = "no-chain"
    DROPPED = "dropped"
    STOPPED = "stopped"
    CRITICAL = "critical"
    WARNING = "warning"
    RUNNING = "running"


STATUS_TEXT = {
    TimerStatus.NO_CHAIN: "No Active Chain",
    TimerStatus.DROPPED: "CHAIN DROPPED!",
    TimerStatus.STOPPED: "Timer Stopped",
    TimerStatus.CRITICAL: "ATTACK NOW!",
    TimerStatus.WARNING: "Attack Soon!",
    TimerStatus.RUNNING: "Chain Active",
}


def classify(is_running: bool, remaining_seconds: int,
             current_hits_if_synced: Optional[int], primary_threshold: int) -> TimerStatus:
    """Derive the display status; first matching rule wins.

    Args:
        is_running: Whether the countdown is active
        remaining_seconds: Seconds left on the chain
        current_hits_if_synced: Chain hit count in synced mode, None in manual mode
            or before the first snapshot
        primary_threshold: Configured alarm threshold in seconds

    Returns:
        TimerStatus: Derived status
    """
    if current_hits_if_synced == 0 and not is_running:
        return TimerStatus.NO_CHAIN
    if not is_running and remaining_seconds == 0:
        return TimerStatus.DROPPED
    if not is_running:
        return TimerStatus.STOPPED
    if remaining_seconds <= CRITICAL_THRESHOLD_SECONDS:
        return TimerStatus.CRITICAL
    if remaining_seconds <= primary_threshold:
        return TimerStatus.WARNING
    return TimerStatus.RUNNING


def status_text(status: TimerStatus) -> str:
    return STATUS_TEXT[status]


def format_clock(seconds: int) -> str:
    """Format seconds as M:SS (e.g. 299 -> "4:59")."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"
