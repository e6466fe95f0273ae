"""
Centralized configuration management for Chain Timer
Handles environment-specific configs and validation with thread safety

The engine only reads these values once at session start; the settings
routes write changes back through the thread-safe config manager.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .config_schema import (ChainTimerConfig, migrate_legacy_config,
                            validate_config_dict)

load_dotenv()

logger = logging.getLogger("chain.config")


class ConfigManager:
    """Manages configuration loading and validation"""

    def __init__(self, base_path: Optional[str] = None):
        self.base_path = Path(base_path) if base_path else Path(__file__).parent.parent
        env_dir = os.getenv("CHAINTIMER_CONFIG_DIR")
        self.config_dir = Path(env_dir) if env_dir else self.base_path / "config"
        self.environment = os.getenv("CHAINTIMER_ENV", "development")

    def load_config(self, config_name: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration based on environment

        Args:
            config_name: Specific config file name (without .json)
                        If None, uses environment-based config

        Returns:
            Configuration dictionary
        """
        if config_name is None:
            config_name = self.environment

        config_file = self.config_dir / f"{config_name}.json"
        default_config = self._read_json(self.config_dir / "default_config.json")
        env_config = self._read_json(config_file)

        # Environment overrides default
        config = {**default_config, **env_config}

        # A key from the environment (.env / systemd) fills an empty config value
        env_key = os.getenv("TORN_API_KEY", "").strip()
        if env_key and not str(config.get("api_key") or "").strip():
            config["api_key"] = env_key

        validated = self.validate_config(config)
        validated["_runtime"] = {
            "environment": self.environment,
            "config_file": str(config_file),
            "base_path": str(self.base_path)
        }
        return validated

    @staticmethod
    def _read_json(path: Path) -> Dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning(f"Could not load config {path.name}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def validate_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Validate and clean configuration.

        Invalid fields fall back to their defaults one by one so a single bad
        value does not throw away the rest of the file (e.g. the API key).
        """
        try:
            validated_model, warnings = validate_config_dict(config)
            for warning in warnings:
                logger.warning(f"Config validation warning: {warning}")
            return validated_model.to_dict()
        except ValueError as e:
            logger.error(f"❌ Configuration schema validation failed: {e}")

        model = ChainTimerConfig()
        for key, value in migrate_legacy_config(config).items():
            if key.startswith("_"):
                continue
            try:
                setattr(model, key, value)
            except ValueError:
                logger.warning(f"Invalid config value for '{key}' ({value!r}) - using default")
        return model.to_dict()

    def save_config(self, config: Dict[str, Any], config_name: Optional[str] = None) -> bool:
        """
        Save configuration to file

        Args:
            config: Configuration to save
            config_name: Config file name (without .json)

        Returns:
            True if saved successfully
        """
        if config_name is None:
            config_name = self.environment

        config_file = self.config_dir / f"{config_name}.json"
        try:
            validated_model, _ = validate_config_dict(config)
        except ValueError as e:
            logger.error(f"Refusing to save invalid config: {e}")
            return False

        data = validated_model.to_json_safe()
        # The environment key is filled in on load; it never belongs on disk
        env_key = os.getenv("TORN_API_KEY", "").strip()
        if env_key and data.get("api_key") == env_key:
            data["api_key"] = ""

        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(config_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            return True
        except (IOError, TypeError) as e:
            logger.error(f"Failed to write {config_file}: {e}")
            return False


# Global config manager instance
config_manager = ConfigManager()

from .utils.thread_safety import (initialize_thread_safe_config,  # noqa: E402
                                  load_config_safe)

initialize_thread_safe_config(config_manager)


def load_config() -> Dict[str, Any]:
    """Load current environment configuration (THREAD-SAFE)"""
    return load_config_safe()
