"""Chain timer session - the single owner of engine state.

- Every mutation (tick, API snapshot, manual command, setting change) goes
  through ``reducer.apply`` under one lock, so events never interleave
- The tick loop runs for the whole started session; the poll loop only in
  synced mode, and a mode switch flips it inside the same critical section
- HTTP calls happen outside the lock; a result that comes back after the
  sync generation changed is dropped
- Side effects (alarm on/off) run after the lock is released
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional

from ..constants import (DEFAULT_ALARM_THRESHOLD, DEFAULT_ALARM_VOLUME,
                         POLL_INTERVAL_SECONDS, TICK_INTERVAL_SECONDS)
from . import reducer
from .alarm import AlarmEmitter, build_default_emitter
from .remote_sync import ChainFetcher, PollResult, RemoteSync, accept_snapshot
from .state import (Effect, Event, FireAlarm, ModeChanged, Reset,
                    SessionState, SilenceAlarm, SnapshotReceived, Start, Stop,
                    ThresholdChanged, Tick, TimerMode, initial_state)
from ..utils.logger import log_structured
from .status import classify, format_clock, status_text

_logger = logging.getLogger("chain.session")


class PeriodicLoop:
    """Runs ``action`` every ``interval`` seconds on a daemon thread.

    ``start()`` and ``stop()`` are idempotent. ``wake()`` runs the action
    immediately and restarts the cadence from there.
    """

    def __init__(self, name: str, interval: float, action: Callable[[], Any], run_immediately: bool = False):
        self.name = name
        self.interval = interval
        self._action = action
        self._run_immediately = run_immediately
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stopped_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._thread is not None

    def start(self) -> bool:
        with self._lock:
            if self._thread is not None:
                return False
            self._stop_event = threading.Event()
            self._wake_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run,
                args=(self._stop_event, self._wake_event),
                name=self.name,
                daemon=True,
            )
            self._thread.start()
            _logger.debug(f"▶️ {self.name} loop started")
            return True

    def stop(self) -> bool:
        with self._lock:
            if self._thread is None:
                return False
            self._stop_event.set()
            self._wake_event.set()
            self._stopped_thread = self._thread
            self._thread = None
            _logger.debug(f"⏹️ {self.name} loop stopped")
            return True

    def wake(self) -> None:
        with self._lock:
            if self._thread is not None:
                self._wake_event.set()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the most recently stopped thread to exit."""
        thread = self._stopped_thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def _run(self, stop_event: threading.Event, wake_event: threading.Event) -> None:
        deadline = time.monotonic() + (0.0 if self._run_immediately else self.interval)
        while not stop_event.is_set():
            remaining = deadline - time.monotonic()
            if remaining > 0:
                wake_event.wait(timeout=remaining)
            if stop_event.is_set():
                break
            if wake_event.is_set():
                wake_event.clear()
                deadline = time.monotonic()
            if time.monotonic() < deadline:
                continue
            try:
                self._action()
            except Exception as e:
                # A broken cycle must not end the loop; the next one may succeed
                _logger.error(f"❌ {self.name} loop action failed: {e}", exc_info=True)
            deadline += self.interval
            now = time.monotonic()
            if deadline < now:
                deadline = now + self.interval


class ChainTimerSession:
    def __init__(
        self,
        *,
        mode: TimerMode = TimerMode.MANUAL,
        alarm_threshold: int = DEFAULT_ALARM_THRESHOLD,
        volume: int = DEFAULT_ALARM_VOLUME,
        api_key: str = "",
        emitter: Optional[AlarmEmitter] = None,
        fetcher: Optional[ChainFetcher] = None,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        poll_interval: float = POLL_INTERVAL_SECONDS,
    ):
        self._lock = threading.RLock()
        self._state: SessionState = initial_state(mode, alarm_threshold)
        self._volume = volume
        self._remote = RemoteSync(api_key, fetcher)
        self._emitter = emitter or build_default_emitter()
        self._tick_loop = PeriodicLoop("ChainTick", tick_interval, self.tick)
        self._poll_loop = PeriodicLoop("ChainPoll", poll_interval, self.poll_once, run_immediately=True)
        self._started = False
        self._sync_generation = 0
        self.alarms_fired = 0

    # ---- lifecycle ----------------------------------------------------------

    @property
    def is_started(self) -> bool:
        with self._lock:
            return self._started

    @property
    def tick_loop_active(self) -> bool:
        return self._tick_loop.is_active

    @property
    def poll_loop_active(self) -> bool:
        return self._poll_loop.is_active

    def start(self) -> bool:
        """Start the loops. Returns False if already started."""
        with self._lock:
            if self._started:
                return False
            self._started = True
            self._tick_loop.start()
            if self._state.mode is TimerMode.SYNCED:
                self._poll_loop.start()
            _logger.info(f"⛓️ Chain timer session started ({self._state.mode.value} mode)")
            return True

    def stop(self, join_timeout: float = 2.0) -> bool:
        """Stop the loops and silence any alarm. Returns False if not started."""
        with self._lock:
            if not self._started:
                return False
            self._started = False
            self._tick_loop.stop()
            self._poll_loop.stop()
        self._tick_loop.join(join_timeout)
        self._poll_loop.join(join_timeout)
        self._emitter.silence()
        _logger.info("🛑 Chain timer session stopped")
        return True

    # ---- event processing ---------------------------------------------------

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def dispatch(self, event: Event) -> List[Effect]:
        """Apply one event and run its effects."""
        with self._lock:
            effects = self._apply_locked(event)
            volume = self._volume
        self._run_effects(effects, volume)
        return effects

    def _apply_locked(self, event: Event) -> List[Effect]:
        self._state, effects = reducer.apply(self._state, event)
        self.alarms_fired += sum(1 for effect in effects if isinstance(effect, FireAlarm))
        return effects

    def _run_effects(self, effects: List[Effect], volume: int) -> None:
        for effect in effects:
            if isinstance(effect, FireAlarm):
                _logger.info(f"🔔 Alarm threshold crossed ({effect.remaining_seconds}s left)")
                self._emitter.signal(volume)
            elif isinstance(effect, SilenceAlarm):
                self._emitter.silence()

    def tick(self) -> List[Effect]:
        return self.dispatch(Tick())

    def poll_once(self) -> Optional[PollResult]:
        """Fetch one API reading and apply it. Returns None when not in synced mode."""
        with self._lock:
            if self._state.mode is not TimerMode.SYNCED:
                return None
            generation = self._sync_generation

        result = self._remote.poll()

        with self._lock:
            if generation != self._sync_generation:
                _logger.debug("Discarding poll result from a previous sync generation")
                return None
            effects: List[Effect] = []
            duplicate = False
            if result.snapshot is not None:
                duplicate = accept_snapshot(self._state, result.snapshot) is None
                effects = self._apply_locked(SnapshotReceived(result.snapshot))
                if not duplicate:
                    log_structured(
                        _logger, logging.DEBUG, "Chain snapshot applied",
                        hits=result.snapshot.current_hits,
                        timeout=result.snapshot.timeout_seconds,
                        cooldown=result.snapshot.cooldown_seconds,
                        remaining=self._state.timer.remaining_seconds,
                    )
            self._remote.record(result, duplicate=duplicate)
            volume = self._volume
        self._run_effects(effects, volume)
        return result

    # ---- manual commands ----------------------------------------------------

    def start_timer(self) -> List[Effect]:
        return self.dispatch(Start())

    def reset_timer(self) -> List[Effect]:
        return self.dispatch(Reset())

    def stop_timer(self) -> List[Effect]:
        return self.dispatch(Stop())

    def test_alarm(self) -> None:
        with self._lock:
            volume = self._volume
        self._emitter.silence()
        self._emitter.signal(volume)

    # ---- setters (values arrive validated) ---------------------------------

    def set_mode(self, mode: TimerMode) -> bool:
        """Switch modes; the poll loop is started/stopped atomically with the state change."""
        with self._lock:
            if self._state.mode is mode:
                return False
            effects = self._apply_locked(ModeChanged(mode))
            self._sync_generation += 1
            self._remote.reset()
            if self._started:
                if mode is TimerMode.SYNCED:
                    self._poll_loop.start()
                else:
                    self._poll_loop.stop()
            volume = self._volume
        self._run_effects(effects, volume)
        _logger.info(f"🔀 Switched to {mode.value} mode")
        return True

    def set_alarm_threshold(self, seconds: int) -> None:
        self.dispatch(ThresholdChanged(seconds))

    def set_volume(self, volume: int) -> None:
        with self._lock:
            self._volume = volume

    def set_api_key(self, api_key: str) -> None:
        with self._lock:
            if api_key == self._remote.api_key:
                return
            self._remote.api_key = api_key
            self._remote.status.last_error = None
            # Readings for the old key are stale; the next one for the new key always applies
            self._sync_generation += 1
            self._state = replace(self._state, last_raw_timeout=None)
            if self._started and self._state.mode is TimerMode.SYNCED:
                self._poll_loop.wake()

    # ---- read side ----------------------------------------------------------

    @property
    def volume(self) -> int:
        with self._lock:
            return self._volume

    @property
    def api_key(self) -> str:
        with self._lock:
            return self._remote.api_key

    @property
    def has_api_key(self) -> bool:
        with self._lock:
            return bool(self._remote.api_key)

    def status(self) -> Dict[str, Any]:
        """Display snapshot of the session."""
        with self._lock:
            state = self._state
            sync = self._remote.status.to_dict()
            volume = self._volume
            has_key = bool(self._remote.api_key)
            alarms_fired = self.alarms_fired
            started = self._started

        timer = state.timer
        status = classify(
            timer.is_running,
            timer.remaining_seconds,
            state.current_hits_if_synced,
            state.thresholds.primary,
        )
        payload: Dict[str, Any] = {
            "remaining_seconds": timer.remaining_seconds,
            "display": format_clock(timer.remaining_seconds),
            "is_running": timer.is_running,
            "mode": timer.mode.value,
            "status": status.value,
            "status_text": status_text(status),
            "alarm_threshold": state.thresholds.primary,
            "thresholds": sorted(state.thresholds.values, reverse=True),
            "volume": volume,
            "muted": volume == 0,
            "alarms_fired": alarms_fired,
            "session_started": started,
        }
        if timer.mode is TimerMode.SYNCED:
            api_timeout = sync["api_timeout"]
            payload["sync"] = {
                **sync,
                "chain_count": state.chain_count,
                "api_timeout_display": format_clock(api_timeout) if api_timeout is not None else None,
                "has_api_key": has_key,
            }
        return payload
