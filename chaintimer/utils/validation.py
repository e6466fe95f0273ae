#!/usr/bin/env python3
"""
🛡️ Input Validation Module for Chain Timer
Validates every user-supplied setting before it reaches the session:
- Alarm threshold (one of the offered choices)
- Volume levels (0-100)
- Timer mode (manual/synced)
- Torn API key
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Union

from ..constants import ALARM_THRESHOLD_CHOICES
from ..core.state import TimerMode


@dataclass
class ValidationResult:
    """Result of input validation with value and error details."""
    is_valid: bool
    value: Any = None
    error: str = ""
    field_name: str = ""


class ValidationError(Exception):
    """Raised when a setting fails validation."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        self.message = message
        super().__init__(f"{field_name}: {message}")


class InputValidator:
    """Centralized input validation for all Chain Timer settings."""

    MIN_VOLUME = 0
    MAX_VOLUME = 100

    # Torn keys are 16 alphanumeric characters
    API_KEY_PATTERN = re.compile(r'^[A-Za-z0-9]{16}$')

    TRUE_VALUES = {"1", "true", "yes", "on", "synced", "api", "auto"}
    FALSE_VALUES = {"0", "false", "no", "off", "manual"}

    @classmethod
    def validate_alarm_threshold(cls, value: Union[str, int, None], field_name: str = "alarm_threshold") -> ValidationResult:
        """Validate the configurable alarm threshold (seconds).

        Returns:
            ValidationResult: Validation result with cleaned value or error
        """
        if value is None or value == "":
            return ValidationResult(False, None, f"{field_name} is required", field_name)
        if isinstance(value, bool):
            return ValidationResult(False, None, f"{field_name} must be a number", field_name)
        try:
            seconds = int(value)
        except (ValueError, TypeError):
            return ValidationResult(False, None, f"{field_name} must be a number", field_name)
        if seconds not in ALARM_THRESHOLD_CHOICES:
            choices = ", ".join(str(c) for c in ALARM_THRESHOLD_CHOICES)
            return ValidationResult(False, None, f"{field_name} must be one of {choices}", field_name)
        return ValidationResult(True, seconds, "", field_name)

    @classmethod
    def validate_volume(cls, value: Union[str, int, None], field_name: str = "volume") -> ValidationResult:
        """Validate volume input (0-100)."""
        if value is None or value == "":
            return ValidationResult(False, None, f"{field_name} is required", field_name)
        if isinstance(value, bool):
            return ValidationResult(False, None, f"{field_name} must be a valid number", field_name)
        try:
            volume = int(value)
        except (ValueError, TypeError):
            return ValidationResult(
                False, None,
                f"{field_name} must be a valid number between {cls.MIN_VOLUME} and {cls.MAX_VOLUME}",
                field_name
            )
        if volume < cls.MIN_VOLUME or volume > cls.MAX_VOLUME:
            return ValidationResult(
                False, None,
                f"{field_name} must be between {cls.MIN_VOLUME} and {cls.MAX_VOLUME}",
                field_name
            )
        return ValidationResult(True, volume, "", field_name)

    @classmethod
    def validate_mode(cls, value: Any, field_name: str = "mode") -> ValidationResult:
        """Accept a TimerMode, its value, or a boolean-ish api_mode flag."""
        if isinstance(value, TimerMode):
            return ValidationResult(True, value, "", field_name)
        if isinstance(value, bool):
            return ValidationResult(True, TimerMode.SYNCED if value else TimerMode.MANUAL, "", field_name)
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in cls.TRUE_VALUES:
                return ValidationResult(True, TimerMode.SYNCED, "", field_name)
            if normalized in cls.FALSE_VALUES:
                return ValidationResult(True, TimerMode.MANUAL, "", field_name)
        return ValidationResult(False, None, f"{field_name} must be 'manual' or 'synced'", field_name)

    @classmethod
    def validate_api_key(cls, value: Union[str, None], field_name: str = "api_key") -> ValidationResult:
        """Empty is allowed (clears the key); otherwise 16 alphanumerics."""
        if value is None:
            return ValidationResult(True, "", "", field_name)
        if not isinstance(value, str):
            return ValidationResult(False, None, f"{field_name} must be a string", field_name)
        key = value.strip()
        if key and not cls.API_KEY_PATTERN.match(key):
            return ValidationResult(False, None, f"{field_name} must be 16 letters or digits", field_name)
        return ValidationResult(True, key, "", field_name)


_FIELD_VALIDATORS = {
    "alarm_threshold": InputValidator.validate_alarm_threshold,
    "volume": InputValidator.validate_volume,
    "mode": InputValidator.validate_mode,
    "api_key": InputValidator.validate_api_key,
}


def validate_settings_update(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate a partial settings update.

    Only keys present in ``data`` are validated and returned; unknown keys are
    ignored. ``api_mode`` is accepted as an alias of ``mode``.

    Raises:
        ValidationError: On the first invalid field
    """
    if "api_mode" in data and "mode" not in data:
        data = {**data, "mode": data["api_mode"]}

    cleaned: Dict[str, Any] = {}
    for field_name, validator in _FIELD_VALIDATORS.items():
        if field_name not in data:
            continue
        result = validator(data[field_name])
        if not result.is_valid:
            raise ValidationError(field_name, result.error)
        cleaned[field_name] = result.value
    return cleaned
