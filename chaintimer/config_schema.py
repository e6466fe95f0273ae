"""
Pydantic models for Chain Timer configuration validation

Type-safe configuration schema with automatic validation, so a hand-edited
config file cannot feed the engine a threshold or volume it cannot handle.
"""

from typing import Any, Dict

from pydantic import BaseModel, Field, field_validator

from .constants import (ALARM_THRESHOLD_CHOICES, DEFAULT_ALARM_THRESHOLD,
                        DEFAULT_ALARM_VOLUME)

# Setting names used by the original browser version (localStorage keys)
LEGACY_KEY_MAP = {
    "tornChainAlarmTime": "alarm_threshold",
    "tornChainVolume": "volume",
    "tornApiKey": "api_key",
    "tornApiMode": "api_mode",
}


class ChainTimerConfig(BaseModel):
    """Complete Chain Timer configuration schema.

    Example:
        >>> validated = ChainTimerConfig(**{"alarm_threshold": 45, "volume": 60})
        >>> validated.alarm_threshold
        45
    """

    # Alarm settings
    alarm_threshold: int = Field(default=DEFAULT_ALARM_THRESHOLD, description="Seconds remaining when the main alarm fires")
    volume: int = Field(default=DEFAULT_ALARM_VOLUME, ge=0, le=100, description="Alarm volume (0-100, 0 = muted)")

    # Torn API settings
    api_key: str = Field(default="", description="Torn API key (may be empty)")
    api_mode: bool = Field(default=False, description="Sync with the Torn API instead of manual timing")

    # Runtime settings
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$", description="Logging level")
    host: str = Field(default="127.0.0.1", description="HTTP bind address")
    port: int = Field(default=5080, ge=1, le=65535, description="HTTP port")

    model_config = {
        "extra": "allow",  # Allow extra fields for forward compatibility
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @field_validator('alarm_threshold')
    @classmethod
    def validate_alarm_threshold(cls, v: int) -> int:
        if v not in ALARM_THRESHOLD_CHOICES:
            raise ValueError(f"Invalid alarm_threshold: {v}. Must be one of {list(ALARM_THRESHOLD_CHOICES)}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode='json')

    def to_json_safe(self) -> Dict[str, Any]:
        """Convert to JSON-safe dictionary (for saving to file)."""
        return {k: v for k, v in self.to_dict().items() if not k.startswith("_")}


def validate_config_dict(config_dict: Dict[str, Any]) -> tuple[ChainTimerConfig, list[str]]:
    """Validate a config dictionary against the schema.

    Args:
        config_dict: Raw configuration dictionary from JSON

    Returns:
        Tuple of (validated_config, warnings_list)

    Raises:
        ValueError: If config is invalid with detailed error messages
    """
    warnings = []
    for key in config_dict:
        if key in LEGACY_KEY_MAP:
            warnings.append(f"Field '{key}' is deprecated, use '{LEGACY_KEY_MAP[key]}' instead")

    migrated = migrate_legacy_config({k: v for k, v in config_dict.items() if not k.startswith("_")})
    try:
        validated = ChainTimerConfig(**migrated)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {str(e)}")
    return validated, warnings


def migrate_legacy_config(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Migrate browser-era setting names to the current schema.

    The browser version stored everything as strings ("60", "true"), so
    values are converted while renaming. Current names win over legacy ones.
    """
    migrated = config_dict.copy()

    for legacy_key, key in LEGACY_KEY_MAP.items():
        if legacy_key not in migrated:
            continue
        value = migrated.pop(legacy_key)
        if key in migrated:
            continue
        if key == "api_mode" and isinstance(value, str):
            value = value.strip().lower() == "true"
        elif key in ("alarm_threshold", "volume") and isinstance(value, str):
            try:
                value = int(value)
            except ValueError:
                continue
        migrated[key] = value

    return migrated
