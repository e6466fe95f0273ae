"""Edge-triggered threshold crossing detection."""

from __future__ import annotations

from typing import Iterable, Optional


def crossed(previous: Optional[int], current: int, threshold: int) -> bool:
    """Return True if moving from ``previous`` to ``current`` crosses ``threshold``.

    A first observation (``previous`` is None) already at or below the
    threshold counts as a crossing.
    """
    if previous is None:
        return current <= threshold
    return previous > threshold >= current


def check_crossing(previous: Optional[int], current: int, thresholds: Iterable[int]) -> bool:
    """Return True if any threshold was crossed.

    Several thresholds crossed in one step (e.g. 61 -> 4) still yield a
    single True, so the caller requests exactly one alarm.
    """
    return any(crossed(previous, current, threshold) for threshold in thresholds)
