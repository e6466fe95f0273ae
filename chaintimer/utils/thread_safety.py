#!/usr/bin/env python3
"""
🔐 Thread-Safe Configuration Management for Chain Timer
Serializes config reads and writes between Flask request handlers and the
session setup in ``run.py``, with change notifications and transactions.
"""

import copy
import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Optional


class ThreadSafeConfigManager:
    """
    Thread-safe wrapper around a config manager.

    Features:
    - One re-entrant lock for all reads and writes
    - Short-lived cache to avoid re-reading the file on every request
    - Change notifications for components
    - Transactions with rollback
    """

    def __init__(self, base_config_manager, cache_ttl: float = 1.0):
        """
        Args:
            base_config_manager: Object with ``load_config()`` and ``save_config(config)``
            cache_ttl: Seconds a loaded config is reused
        """
        self._base_manager = base_config_manager
        self._lock = threading.RLock()
        self._config_cache: Optional[Dict[str, Any]] = None
        self._cache_timestamp: float = 0
        self._cache_ttl = cache_ttl
        self._change_listeners: list[Callable[[Dict[str, Any]], None]] = []
        self._logger = logging.getLogger('chain.thread_safe_config')

    def add_change_listener(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        with self._lock:
            self._change_listeners.append(callback)

    def remove_change_listener(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        with self._lock:
            if callback in self._change_listeners:
                self._change_listeners.remove(callback)

    def _notify_listeners(self, new_config: Dict[str, Any]) -> None:
        for listener in list(self._change_listeners):
            try:
                listener(copy.deepcopy(new_config))
            except Exception as e:
                self._logger.error(f"❌ Error in config change listener {getattr(listener, '__name__', listener)}: {e}")

    def _is_cache_valid(self) -> bool:
        return (
            self._config_cache is not None and
            time.time() - self._cache_timestamp < self._cache_ttl
        )

    def load_config(self, use_cache: bool = True) -> Dict[str, Any]:
        """
        Load configuration with thread-safe caching.

        Returns:
            Configuration dictionary (deep copy for thread safety)
        """
        with self._lock:
            if use_cache and self._is_cache_valid():
                return copy.deepcopy(self._config_cache)
            config = self._base_manager.load_config()
            self._config_cache = copy.deepcopy(config)
            self._cache_timestamp = time.time()
            return copy.deepcopy(config)

    def save_config(self, config: Dict[str, Any], notify_listeners: bool = True) -> bool:
        """
        Save configuration with thread-safe operations.

        Returns:
            True if saved successfully
        """
        with self._lock:
            success = self._base_manager.save_config(config)
            if not success:
                self._logger.error("❌ Config save failed")
                return False
            # Re-read so the cache holds the validated form
            self._config_cache = None
            saved = self.load_config(use_cache=False)
            self._logger.info("✅ Config saved")

        if notify_listeners:
            self._notify_listeners(saved)
        return True

    @contextmanager
    def config_transaction(self):
        """
        Context manager for atomic config operations.

        Usage:
            with manager.config_transaction() as transaction:
                config = transaction.load()
                config['volume'] = 40
                transaction.save(config)
                # rolled back if the block raises
        """
        with self._lock:
            transaction = ConfigTransactionContext(self)
            try:
                yield transaction
            except Exception as e:
                self._logger.error(f"❌ Transaction failed, rolling back: {e}")
                transaction.rollback()
                raise

    def get_config_value(self, key: str, default: Any = None) -> Any:
        return self.load_config().get(key, default)

    def set_config_value(self, key: str, value: Any) -> bool:
        with self._lock:
            config = self.load_config(use_cache=False)
            config[key] = value
            return self.save_config(config)

    def invalidate_cache(self) -> None:
        with self._lock:
            self._config_cache = None
            self._cache_timestamp = 0


class ConfigTransactionContext:
    """Context for atomic configuration transactions."""

    def __init__(self, config_manager: ThreadSafeConfigManager):
        self._config_manager = config_manager
        self._original_config: Optional[Dict[str, Any]] = None
        self._saved = False

    def load(self) -> Dict[str, Any]:
        config = self._config_manager.load_config(use_cache=False)
        if self._original_config is None:
            self._original_config = copy.deepcopy(config)
        return config

    def save(self, config: Dict[str, Any]) -> bool:
        self._saved = True
        return self._config_manager.save_config(config)

    def rollback(self) -> bool:
        """Restore the config as it was at the first ``load()``."""
        if self._saved and self._original_config is not None:
            return self._config_manager.save_config(self._original_config, notify_listeners=False)
        return False


_thread_safe_config_manager: Optional[ThreadSafeConfigManager] = None

def initialize_thread_safe_config(base_config_manager) -> None:
    """Initialize the global thread-safe config manager."""
    global _thread_safe_config_manager
    _thread_safe_config_manager = ThreadSafeConfigManager(base_config_manager)

def get_thread_safe_config_manager() -> ThreadSafeConfigManager:
    if _thread_safe_config_manager is None:
        raise RuntimeError("Thread-safe config manager not initialized. Call initialize_thread_safe_config() first.")
    return _thread_safe_config_manager

def load_config_safe() -> Dict[str, Any]:
    return get_thread_safe_config_manager().load_config()
