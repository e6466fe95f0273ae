"""
🔔 Alarm emission.

The engine only ever calls ``signal(volume)`` and ``silence()``. Requests are
fire-and-forget; while an alarm is sounding a new request extends it instead
of starting a second one on top.
"""

from __future__ import annotations

import logging
import sys
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional, TextIO

from ..constants import ALARM_DURATION_SECONDS

logger = logging.getLogger("chain.alarm")


class AlarmEmitter(ABC):
    """Receives alarm requests from the session."""

    @abstractmethod
    def signal(self, volume_percent: int) -> None:
        """Sound the alarm at ``volume_percent`` (0 is a silent no-op)."""

    def silence(self) -> None:
        """Stop a sounding alarm, if any."""


class AlarmSink(ABC):
    """Whatever actually makes the noise."""

    @abstractmethod
    def start(self, volume_percent: int) -> None:
        ...

    def stop(self) -> None:
        pass


class TerminalBellSink(AlarmSink):
    """Rings the terminal bell; good enough for a headless box or a tmux pane."""

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream or sys.stdout

    def start(self, volume_percent: int) -> None:
        self._stream.write("\a")
        self._stream.flush()


class LoggingSink(AlarmSink):
    def start(self, volume_percent: int) -> None:
        logger.warning(f"🔔 ALARM ({volume_percent}%)")

    def stop(self) -> None:
        logger.debug("🔕 Alarm stopped")


class CoalescingAlarm(AlarmEmitter):
    """Plays through a sink for a fixed duration, coalescing overlapping requests."""

    def __init__(
        self,
        sink: AlarmSink,
        duration: float = ALARM_DURATION_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self._sink = sink
        self._duration = duration
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0
        self.signals = 0

    @property
    def is_sounding(self) -> bool:
        with self._lock:
            return self._timer is not None

    def signal(self, volume_percent: int) -> None:
        if volume_percent <= 0:
            logger.debug("Alarm muted (volume 0)")
            return
        with self._lock:
            self.signals += 1
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                logger.debug("Alarm already sounding - extended")
            else:
                try:
                    self._sink.start(volume_percent)
                except Exception as e:
                    logger.error(f"❌ Alarm sink failed to start: {e}")
                    return
            self._timer = self._timer_factory(self._duration, self._finish, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def silence(self) -> None:
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
            self._timer = None
            self._generation += 1
            self._stop_sink()

    def _finish(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
            self._stop_sink()

    def _stop_sink(self) -> None:
        try:
            self._sink.stop()
        except Exception as e:
            logger.warning(f"Alarm sink failed to stop cleanly: {e}")


def build_default_emitter(use_bell: bool = True) -> AlarmEmitter:
    """Bell in an interactive terminal, log lines otherwise."""
    sink: AlarmSink = TerminalBellSink() if use_bell and sys.stdout.isatty() else LoggingSink()
    return CoalescingAlarm(sink)
