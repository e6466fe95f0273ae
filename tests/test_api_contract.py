"""
API contract tests: response envelope and status codes of the JSON routes.
"""

from chaintimer.core.state import TimerMode

from .conftest import VALID_KEY, snap


def assert_envelope(payload, success=True):
    assert payload["success"] is success
    assert "timestamp" in payload
    assert "request_id" in payload


class TestChainRoutes:

    def test_status(self, client):
        response = client.get("/api/chain/status")
        assert response.status_code == 200
        payload = response.get_json()
        assert_envelope(payload)
        assert payload["data"]["display"] == "5:00"
        assert payload["data"]["status"] == "stopped"
        assert response.headers["X-Request-ID"] == payload["request_id"]

    def test_start_and_stop(self, client, session):
        response = client.post("/api/chain/start")
        assert response.status_code == 200
        assert response.get_json()["data"]["is_running"] is True

        response = client.post("/api/chain/stop")
        assert response.get_json()["data"]["is_running"] is False
        assert not session.state.timer.is_running

    def test_reset(self, client, session):
        session.start_timer()
        for _ in range(10):
            session.tick()
        response = client.post("/api/chain/reset")
        assert response.get_json()["data"]["remaining_seconds"] == 300

    def test_manual_controls_rejected_while_synced(self, client, session):
        session.set_mode(TimerMode.SYNCED)
        response = client.post("/api/chain/start")
        assert response.status_code == 409
        payload = response.get_json()
        assert_envelope(payload, success=False)
        assert payload["error_code"] == "MANUAL_DISABLED"

    def test_mode_switch(self, client, session):
        response = client.post("/api/chain/mode", json={"mode": "synced"})
        assert response.status_code == 200
        assert session.state.mode is TimerMode.SYNCED
        assert response.get_json()["data"]["mode"] == "synced"

    def test_mode_switch_legacy_flag(self, client, session):
        session.set_mode(TimerMode.SYNCED)
        response = client.post("/api/chain/mode", json={"api_mode": False})
        assert response.status_code == 200
        assert session.state.mode is TimerMode.MANUAL

    def test_mode_required(self, client):
        response = client.post("/api/chain/mode", json={})
        assert response.status_code == 400
        assert response.get_json()["error_code"] == "mode"

    def test_test_alarm(self, client, emitter):
        response = client.post("/api/chain/test-alarm")
        assert response.status_code == 200
        assert emitter.signals == [80]

    def test_synced_status_includes_sync_block(self, client, session, fetcher):
        session.set_mode(TimerMode.SYNCED)
        session.set_api_key(VALID_KEY)
        fetcher.queue(snap(5, 0, 120))
        session.poll_once()
        data = client.get("/api/chain/status").get_json()["data"]
        assert data["status"] == "dropped"
        assert data["status_text"] == "CHAIN DROPPED!"
        assert data["sync"]["chain_count"] == 5


class TestSettingsRoutes:

    def test_get(self, client):
        response = client.get("/api/settings")
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["alarm_threshold"] == 60
        assert data["volume"] == 80
        assert data["mode"] == "manual"

    def test_update_json(self, client, session):
        response = client.post("/api/settings", json={"alarm_threshold": 45, "volume": 0})
        assert response.status_code == 200
        assert session.state.thresholds.primary == 45
        assert response.get_json()["data"]["volume"] == 0

    def test_update_form(self, client, session):
        response = client.post("/api/settings", data={"volume": "25"})
        assert response.status_code == 200
        assert session.volume == 25

    def test_invalid_threshold(self, client, session):
        response = client.post("/api/settings", json={"alarm_threshold": 50})
        assert response.status_code == 400
        payload = response.get_json()
        assert_envelope(payload, success=False)
        assert payload["error_code"] == "alarm_threshold"
        assert session.state.thresholds.primary == 60

    def test_invalid_api_key(self, client):
        response = client.post("/api/settings", json={"api_key": "not-a-key"})
        assert response.status_code == 400


class TestHealthRoutes:

    def test_healthz(self, client):
        payload = client.get("/healthz").get_json()
        assert payload["ok"] is True

    def test_health_degraded_before_start(self, client):
        response = client.get("/api/health")
        assert response.status_code == 503
        assert response.get_json()["data"]["overall_healthy"] is False

    def test_health_ok_when_running(self, client, session):
        session.start()
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["services"]["chain"]["healthy"] is True
        assert data["app"]["version"] == "1.1.0"


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.get_json()["error_code"] == "not_found"
