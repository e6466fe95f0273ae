"""Shared pytest fixtures for the Chain Timer test suite."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

import pytest

from chaintimer.app import create_app
from chaintimer.core.alarm import AlarmEmitter
from chaintimer.core.session import ChainTimerSession
from chaintimer.core.state import RemoteSnapshot, TimerMode

VALID_KEY = "AbCdEf0123456789"


def snap(hits: int, timeout: int, cooldown: int = 0) -> RemoteSnapshot:
    return RemoteSnapshot(current_hits=hits, timeout_seconds=timeout, cooldown_seconds=cooldown)


class FakeFetcher:
    """Stands in for ``fetch_chain``: hands out queued snapshots or raises queued errors."""

    def __init__(self, responses: Optional[Iterable[Any]] = None):
        self.responses: List[Any] = list(responses or [])
        self.calls: List[str] = []

    def queue(self, *responses: Any) -> None:
        self.responses.extend(responses)

    def __call__(self, api_key: str) -> Optional[RemoteSnapshot]:
        self.calls.append(api_key)
        if not self.responses:
            return None
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingEmitter(AlarmEmitter):
    """Records alarm requests instead of making noise."""

    def __init__(self):
        self.signals: List[int] = []
        self.silences = 0

    def signal(self, volume_percent: int) -> None:
        self.signals.append(volume_percent)

    def silence(self) -> None:
        self.silences += 1


@pytest.fixture(autouse=True)
def no_env_api_key(monkeypatch):
    """Keep a developer's .env key out of the tests."""
    monkeypatch.delenv("TORN_API_KEY", raising=False)


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def session(emitter, fetcher):
    """Manual-mode session; loops are not started unless a test does so."""
    chain_session = ChainTimerSession(emitter=emitter, fetcher=fetcher, tick_interval=60, poll_interval=60)
    yield chain_session
    chain_session.stop(join_timeout=1.0)


@pytest.fixture
def synced_session(emitter, fetcher):
    chain_session = ChainTimerSession(
        mode=TimerMode.SYNCED,
        api_key=VALID_KEY,
        emitter=emitter,
        fetcher=fetcher,
        tick_interval=60,
        poll_interval=60,
    )
    yield chain_session
    chain_session.stop(join_timeout=1.0)


@pytest.fixture
def app(session):
    flask_app = create_app(session=session)
    flask_app.config.update({"TESTING": True})
    return flask_app


@pytest.fixture
def client(app):
    """Provide a fresh Flask test client for each test."""
    with app.test_client() as test_client:
        yield test_client
