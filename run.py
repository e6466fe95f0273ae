#!/usr/bin/env python3
"""
Chain Timer Runner - Starts the session loops and serves the JSON API
"""

import os

from waitress import serve

from chaintimer.app import build_session_from_config, create_app
from chaintimer.config import load_config
from chaintimer.utils.logger import log_shutdown, setup_logging
from chaintimer.utils.thread_safety import get_thread_safe_config_manager

if __name__ == "__main__":
    config = load_config()
    logger = setup_logging(config.get("log_level"))

    port = int(os.environ.get("PORT", config.get("port", 5080)))
    debug_mode = config.get("debug", False)
    host = config.get("host", "127.0.0.1")

    session = build_session_from_config(config)
    app = create_app(session=session, config_store=get_thread_safe_config_manager())

    print(f"⛓️ Starting Chain Timer on {host}:{port}")
    print(f"🌍 Environment: {config.get('environment', 'unknown')}")
    print(f"🔧 Debug mode: {debug_mode}")
    print(f"🔀 Mode: {session.state.mode.value}")

    session.start()
    try:
        if debug_mode:
            # The reloader would start a second session in the child process
            app.run(host=host, port=port, debug=debug_mode, use_reloader=False)
        else:
            threads = int(os.environ.get("CHAINTIMER_WAITRESS_THREADS", "4"))
            print(f"🍽️ Using Waitress WSGI server (threads={threads})")
            serve(app, host=host, port=port, threads=threads)
    finally:
        session.stop()
        log_shutdown(logger, "Chain Timer")
