"""
⛓️ Chain Service - Business Logic for the Chain Timer
=====================================================

Validates user input, drives the session and writes changed settings back
to the configuration store. The session itself never persists anything.
"""

from typing import Any, Dict, Mapping, Optional

from . import BaseService, ServiceResult
from ..constants import ALARM_THRESHOLD_CHOICES
from ..core.session import ChainTimerSession
from ..core.state import TimerMode
from ..utils.thread_safety import ThreadSafeConfigManager
from ..utils.validation import (InputValidator, ValidationError,
                                validate_settings_update)


def mask_api_key(api_key: str) -> str:
    if not api_key:
        return ""
    return "•" * max(0, len(api_key) - 4) + api_key[-4:]


class ChainService(BaseService):
    """Service wrapping a ChainTimerSession."""

    def __init__(self, session: ChainTimerSession, config_store: Optional[ThreadSafeConfigManager] = None):
        super().__init__("chain")
        self.session = session
        self._config_store = config_store

    # ---- status -------------------------------------------------------------

    def get_status(self) -> ServiceResult:
        try:
            return self._success_result(data=self.session.status())
        except Exception as e:
            return self._handle_error(e, "get_status")

    def health_check(self) -> ServiceResult:
        base = super().health_check()
        if not base.success:
            return base

        status = self.session.status()
        synced = status["mode"] == TimerMode.SYNCED.value
        checks = {
            "session_started": self.session.is_started,
            "tick_loop_active": self.session.tick_loop_active,
            "poll_loop_active": self.session.poll_loop_active,
        }
        last_error = status.get("sync", {}).get("last_error") if synced else None

        healthy = checks["session_started"] and checks["tick_loop_active"]
        if synced:
            healthy = healthy and checks["poll_loop_active"]
        state = "healthy" if healthy and not last_error else "degraded"
        return self._success_result(data={
            "status": state,
            "service": self.name,
            "mode": status["mode"],
            "checks": checks,
            "last_error": last_error,
        })

    # ---- manual commands ----------------------------------------------------

    def _manual_only(self) -> Optional[ServiceResult]:
        if self.session.state.mode is not TimerMode.MANUAL:
            return self._error_result(
                "Manual controls are disabled while syncing with the Torn API",
                error_code="MANUAL_DISABLED"
            )
        return None

    def start_timer(self) -> ServiceResult:
        blocked = self._manual_only()
        if blocked:
            return blocked
        self.session.start_timer()
        return self._success_result(data=self.session.status(), message="Timer started")

    def reset_timer(self) -> ServiceResult:
        blocked = self._manual_only()
        if blocked:
            return blocked
        self.session.reset_timer()
        return self._success_result(data=self.session.status(), message="Timer reset")

    def stop_timer(self) -> ServiceResult:
        blocked = self._manual_only()
        if blocked:
            return blocked
        self.session.stop_timer()
        return self._success_result(data=self.session.status(), message="Timer stopped")

    def test_alarm(self) -> ServiceResult:
        try:
            self.session.test_alarm()
            return self._success_result(message="Test alarm triggered")
        except Exception as e:
            return self._handle_error(e, "test_alarm")

    # ---- settings -----------------------------------------------------------

    def get_settings(self) -> ServiceResult:
        state = self.session.state
        return self._success_result(data={
            "alarm_threshold": state.thresholds.primary,
            "alarm_threshold_choices": list(ALARM_THRESHOLD_CHOICES),
            "volume": self.session.volume,
            "mode": state.mode.value,
            "api_key": mask_api_key(self.session.api_key),
            "has_api_key": self.session.has_api_key,
        })

    def set_mode(self, value: Any) -> ServiceResult:
        result = InputValidator.validate_mode(value)
        if not result.is_valid:
            return self._error_result(result.error, error_code=result.field_name)
        return self.update_settings({"mode": result.value})

    def update_settings(self, data: Mapping[str, Any]) -> ServiceResult:
        """Validate, apply to the session, then persist."""
        try:
            cleaned = validate_settings_update(data)
        except ValidationError as e:
            return self._error_result(f"Invalid {e.field_name}: {e.message}", error_code=e.field_name)

        if not cleaned:
            return self._error_result("No recognised settings in request", error_code="NO_CHANGES")

        if "alarm_threshold" in cleaned:
            self.session.set_alarm_threshold(cleaned["alarm_threshold"])
        if "volume" in cleaned:
            self.session.set_volume(cleaned["volume"])
        if "api_key" in cleaned:
            self.session.set_api_key(cleaned["api_key"])
        if "mode" in cleaned:
            self.session.set_mode(cleaned["mode"])

        persisted = self._persist(cleaned)
        result = self.get_settings()
        if not persisted:
            return self._error_result(
                "Settings applied but could not be saved",
                error_code="SAVE_FAILED",
                data=result.data,
            )
        return self._success_result(data=result.data, message="Settings updated")

    def _persist(self, cleaned: Dict[str, Any]) -> bool:
        if self._config_store is None:
            return True
        updates = {k: v for k, v in cleaned.items() if k != "mode"}
        if "mode" in cleaned:
            updates["api_mode"] = cleaned["mode"] is TimerMode.SYNCED
        try:
            with self._config_store.config_transaction() as txn:
                config = txn.load()
                config.update(updates)
                return txn.save(config)
        except Exception as e:
            self.logger.error(f"Failed to persist settings: {e}")
            return False
