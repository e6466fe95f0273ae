"""
Tests for the logging helpers.
"""

import json
import logging

import pytest

from chaintimer.utils import logger as chain_logger


def make_record(message, level=logging.INFO, **extra):
    record = logging.LogRecord("chain.test", level, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    output = chain_logger.JSONFormatter().format(make_record("Snapshot applied", hits=1250, remaining=285))
    data = json.loads(output)
    assert data["message"] == "Snapshot applied"
    assert data["logger"] == "chain.test"
    assert data["hits"] == 1250
    assert data["timestamp"].endswith("Z")


def test_json_formatter_source_for_warnings():
    data = json.loads(chain_logger.JSONFormatter().format(make_record("Sync failed", logging.WARNING)))
    assert "source" in data


def test_colored_formatter_restores_levelname():
    record = make_record("hello")
    output = chain_logger.ColoredFormatter("%(levelname)s %(message)s").format(record)
    assert "\033[32m" in output
    assert record.levelname == "INFO"


def test_log_structured_plain(caplog, monkeypatch):
    monkeypatch.setattr(chain_logger, "ENABLE_JSON_LOGS", False)
    log = logging.getLogger("chain.test.structured")
    with caplog.at_level(logging.INFO, logger="chain.test.structured"):
        chain_logger.log_structured(log, logging.INFO, "Snapshot applied", hits=3, timeout=120)
    assert "Snapshot applied | hits=3 timeout=120" in caplog.text


def test_log_structured_json_passes_extra(caplog, monkeypatch):
    monkeypatch.setattr(chain_logger, "ENABLE_JSON_LOGS", True)
    log = logging.getLogger("chain.test.structured")
    with caplog.at_level(logging.INFO, logger="chain.test.structured"):
        chain_logger.log_structured(log, logging.INFO, "Snapshot applied", hits=3)
    assert caplog.records[-1].hits == 3


def test_setup_logger_is_idempotent():
    first = chain_logger.setup_logger("chain.test.setup")
    second = chain_logger.setup_logger("chain.test.setup")
    assert first is second
    assert len(first.handlers) >= 1
    count = len(first.handlers)
    chain_logger.setup_logger("chain.test.setup")
    assert len(first.handlers) == count


@pytest.fixture
def chain_root():
    root = logging.getLogger("chain")
    level, handlers = root.level, list(root.handlers)
    handler_levels = [handler.level for handler in handlers]
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    root.setLevel(level)
    for handler, handler_level in zip(handlers, handler_levels):
        handler.setLevel(handler_level)


def test_setup_logging_applies_config_level(chain_root, monkeypatch):
    monkeypatch.setattr(chain_logger, "_env_level", None)
    logger = chain_logger.setup_logging("WARNING")
    assert logger is chain_root
    assert chain_root.level == logging.WARNING
    assert all(handler.level == logging.WARNING for handler in chain_root.handlers)


def test_env_log_level_wins_over_config(chain_root, monkeypatch):
    monkeypatch.setattr(chain_logger, "_env_level", "DEBUG")
    chain_root.setLevel(logging.DEBUG)
    chain_logger.setup_logging("ERROR")
    assert chain_root.level == logging.DEBUG
