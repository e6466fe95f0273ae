"""
RemoteSync - polls the Torn API and filters out repeated readings.

``RemoteSync.poll()`` does the network call and never touches timer state;
the session applies its result under its lock. ``accept_snapshot()`` is the
dedup step: the API only refreshes about every 30s, so most 5s polls return
the same raw timeout and must not re-run compensation or crossing checks.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

from ..api.torn import (TornProviderError, TornTransportError,
                        fetch_chain, redact_api_key)
from .state import RemoteSnapshot, SessionState

logger = logging.getLogger("chain.sync")

NO_API_KEY_MESSAGE = "No API key set"

ChainFetcher = Callable[[str], Optional[RemoteSnapshot]]


@dataclass(frozen=True)
class PollResult:
    """Outcome of one poll: a snapshot, an error message, or neither (benign)."""
    snapshot: Optional[RemoteSnapshot] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SyncStatus:
    """Display-only bookkeeping about the API connection."""
    last_error: Optional[str] = None
    last_fetch: Optional[datetime.datetime] = None
    api_timeout: Optional[int] = None
    polls: int = 0
    failures: int = 0
    duplicates: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_error": self.last_error,
            "last_fetch": self.last_fetch.isoformat() if self.last_fetch else None,
            "api_timeout": self.api_timeout,
            "polls": self.polls,
            "failures": self.failures,
            "duplicates": self.duplicates,
        }


def accept_snapshot(state: SessionState, snapshot: RemoteSnapshot) -> Optional[SessionState]:
    """Return ``state`` with the new raw timeout recorded, or None for a duplicate."""
    if state.last_raw_timeout == snapshot.timeout_seconds:
        return None
    return replace(state, last_raw_timeout=snapshot.timeout_seconds)


class RemoteSync:
    """Fetches chain snapshots and keeps the display-side sync status."""

    def __init__(self, api_key: str = "", fetcher: Optional[ChainFetcher] = None):
        self.api_key = api_key
        self._fetcher: ChainFetcher = fetcher or fetch_chain
        self.status = SyncStatus()

    def poll(self) -> PollResult:
        """Fetch one reading. Never raises for expected failure modes."""
        if not self.api_key:
            return PollResult(error=NO_API_KEY_MESSAGE)
        try:
            snapshot = self._fetcher(self.api_key)
        except TornProviderError as exc:
            return PollResult(error=exc.message)
        except TornTransportError as exc:
            return PollResult(error=f"Network error: {redact_api_key(str(exc), self.api_key)}")
        return PollResult(snapshot=snapshot)

    def record(self, result: PollResult, duplicate: bool = False) -> None:
        """Update ``status`` with a poll outcome."""
        self.status.polls += 1
        if not result.ok:
            self.status.failures += 1
            if result.error != self.status.last_error:
                logger.warning(f"⚠️ Chain sync failed: {result.error}")
            self.status.last_error = result.error
            return

        self.status.last_error = None
        if result.snapshot is None:
            logger.debug("Chain poll returned no chain data")
            return
        self.status.last_fetch = datetime.datetime.now(tz=datetime.timezone.utc)
        self.status.api_timeout = result.snapshot.timeout_seconds
        if duplicate:
            self.status.duplicates += 1

    def reset(self) -> None:
        self.status = SyncStatus()
