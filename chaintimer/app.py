"""
Chain Timer Application Factory
Flask JSON API in front of one ChainTimerSession
"""

import logging
from typing import Any, Dict, Optional

from flask import Flask

from .core.session import ChainTimerSession
from .core.state import TimerMode
from .routes import chain_bp, health_bp, settings_bp
from .routes.errors import register_error_handlers
from .services.service_manager import ServiceManager, set_service_manager
from .utils.thread_safety import ThreadSafeConfigManager
from .utils.validation import InputValidator
from .version import get_app_info

logger = logging.getLogger("chain.app")


def build_session_from_config(config: Dict[str, Any], **session_kwargs: Any) -> ChainTimerSession:
    """Create a session seeded with the persisted settings.

    ``session_kwargs`` are passed through (emitter, fetcher, intervals).
    """
    mode = InputValidator.validate_mode(config.get("api_mode", False)).value or TimerMode.MANUAL
    return ChainTimerSession(
        mode=mode,
        alarm_threshold=config.get("alarm_threshold", 60),
        volume=config.get("volume", 80),
        api_key=config.get("api_key", "") or "",
        **session_kwargs,
    )


def create_app(
    session: Optional[ChainTimerSession] = None,
    config_store: Optional[ThreadSafeConfigManager] = None,
) -> Flask:
    """Return a freshly constructed Flask application.

    Without a session, the global configuration is loaded and a session is
    built from it. The session is not started here; ``run.py`` owns that.
    """
    if session is None:
        if config_store is None:
            from .config import config_manager  # noqa: F401 - initializes the store
            from .utils.thread_safety import get_thread_safe_config_manager
            config_store = get_thread_safe_config_manager()
        session = build_session_from_config(config_store.load_config())

    app = Flask(__name__)
    app.json.sort_keys = False

    manager = ServiceManager(session, config_store)
    set_service_manager(manager)
    app.extensions["chaintimer"] = {
        "session": session,
        "service_manager": manager,
    }

    app.register_blueprint(chain_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(health_bp)
    register_error_handlers(app)

    logger.info(f"🌐 {get_app_info()} API ready")
    return app


__all__ = ["create_app", "build_session_from_config"]
