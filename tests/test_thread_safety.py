"""
Tests for the thread-safe configuration wrapper.
"""

import threading

import pytest

from chaintimer.utils.thread_safety import ThreadSafeConfigManager


class MemoryConfigManager:
    """In-memory stand-in for ConfigManager."""

    def __init__(self, initial=None):
        self.stored = dict(initial or {"alarm_threshold": 60, "volume": 80})
        self.loads = 0
        self.fail_saves = False

    def load_config(self):
        self.loads += 1
        return dict(self.stored)

    def save_config(self, config):
        if self.fail_saves:
            return False
        self.stored = dict(config)
        return True


@pytest.fixture
def base():
    return MemoryConfigManager()


@pytest.fixture
def manager(base):
    return ThreadSafeConfigManager(base, cache_ttl=60)


class TestCaching:

    def test_cached_reads(self, manager, base):
        manager.load_config()
        manager.load_config()
        assert base.loads == 1

    def test_returned_config_is_a_copy(self, manager):
        config = manager.load_config()
        config["volume"] = 1
        assert manager.load_config()["volume"] == 80

    def test_invalidate_cache(self, manager, base):
        manager.load_config()
        manager.invalidate_cache()
        manager.load_config()
        assert base.loads == 2


class TestSaving:

    def test_save_notifies_listeners(self, manager):
        seen = []
        manager.add_change_listener(seen.append)
        assert manager.save_config({"alarm_threshold": 90, "volume": 80}) is True
        assert seen == [{"alarm_threshold": 90, "volume": 80}]

        manager.remove_change_listener(seen.append)
        manager.set_config_value("volume", 10)
        assert len(seen) == 1

    def test_failed_save(self, manager, base):
        base.fail_saves = True
        assert manager.save_config({"volume": 1}) is False
        assert manager.get_config_value("volume") == 80

    def test_broken_listener_does_not_break_save(self, manager):
        def broken(_config):
            raise RuntimeError("listener bug")

        manager.add_change_listener(broken)
        assert manager.set_config_value("volume", 20) is True
        assert manager.get_config_value("volume") == 20


class TestTransactions:

    def test_commit(self, manager, base):
        with manager.config_transaction() as txn:
            config = txn.load()
            config["volume"] = 40
            txn.save(config)
        assert base.stored["volume"] == 40

    def test_rollback_on_error(self, manager, base):
        with pytest.raises(RuntimeError):
            with manager.config_transaction() as txn:
                config = txn.load()
                config["volume"] = 40
                txn.save(config)
                raise RuntimeError("later step failed")
        assert base.stored["volume"] == 80

    def test_concurrent_increments(self, manager, base):
        base.stored["counter"] = 0

        def bump():
            for _ in range(20):
                with manager.config_transaction() as txn:
                    config = txn.load()
                    config["counter"] += 1
                    txn.save(config)

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert base.stored["counter"] == 80
