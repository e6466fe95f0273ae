"""
Tests for RemoteSync polling and the sync status bookkeeping.
"""

from chaintimer.api.torn import TornProviderError, TornTransportError
from chaintimer.core.remote_sync import (NO_API_KEY_MESSAGE, PollResult,
                                         RemoteSync, accept_snapshot)
from chaintimer.core.state import TimerMode, initial_state

from .conftest import VALID_KEY, FakeFetcher, snap


class TestPoll:

    def test_no_api_key(self):
        fetcher = FakeFetcher()
        result = RemoteSync("", fetcher).poll()
        assert result.error == NO_API_KEY_MESSAGE
        assert fetcher.calls == []

    def test_snapshot(self):
        result = RemoteSync(VALID_KEY, FakeFetcher([snap(10, 200)])).poll()
        assert result.ok
        assert result.snapshot == snap(10, 200)

    def test_scenario_d_provider_message_verbatim(self):
        fetcher = FakeFetcher([TornProviderError(2, "Invalid key")])
        result = RemoteSync(VALID_KEY, fetcher).poll()
        assert result.error == "Invalid key"
        assert result.snapshot is None

    def test_transport_error_prefixed(self):
        fetcher = FakeFetcher([TornTransportError("connection refused")])
        result = RemoteSync(VALID_KEY, fetcher).poll()
        assert result.error == "Network error: connection refused"

    def test_transport_error_masks_key(self):
        fetcher = FakeFetcher([TornTransportError(f"Max retries exceeded with url: /faction/?key={VALID_KEY}")])
        result = RemoteSync(VALID_KEY, fetcher).poll()
        assert VALID_KEY not in result.error
        assert result.error.startswith("Network error: ")

    def test_benign_empty_payload(self):
        result = RemoteSync(VALID_KEY, FakeFetcher([None])).poll()
        assert result.ok
        assert result.snapshot is None


class TestRecord:

    def test_error_then_recovery(self):
        sync = RemoteSync(VALID_KEY)
        sync.record(PollResult(error="Invalid key"))
        assert sync.status.last_error == "Invalid key"
        assert sync.status.failures == 1

        sync.record(PollResult(snapshot=snap(10, 120)))
        assert sync.status.last_error is None
        assert sync.status.api_timeout == 120
        assert sync.status.last_fetch is not None
        assert sync.status.polls == 2

    def test_duplicates_counted(self):
        sync = RemoteSync(VALID_KEY)
        sync.record(PollResult(snapshot=snap(10, 120)))
        sync.record(PollResult(snapshot=snap(10, 120)), duplicate=True)
        assert sync.status.duplicates == 1

    def test_benign_poll_clears_error_without_fetch_time(self):
        sync = RemoteSync(VALID_KEY)
        sync.record(PollResult(error="Network error: boom"))
        sync.record(PollResult())
        assert sync.status.last_error is None
        assert sync.status.last_fetch is None

    def test_reset(self):
        sync = RemoteSync(VALID_KEY)
        sync.record(PollResult(error="Invalid key"))
        sync.reset()
        assert sync.status.to_dict() == {
            "last_error": None,
            "last_fetch": None,
            "api_timeout": None,
            "polls": 0,
            "failures": 0,
            "duplicates": 0,
        }


def test_accept_snapshot():
    state = initial_state(TimerMode.SYNCED)
    accepted = accept_snapshot(state, snap(10, 50))
    assert accepted.last_raw_timeout == 50
    assert accept_snapshot(accepted, snap(11, 50)) is None
