import logging

import colorlog
import pytest

from toolkit_core.logging_config import (
    ErrorAggregator,
    LoggerConfigurator,
    debug_requested,
    log_structured_error,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


class TestErrorAggregator:
    def test_summary_counts_and_last_message(self):
        aggregator = ErrorAggregator()
        aggregator.record_error("network", "first")
        aggregator.record_error("network", "second")
        aggregator.record_error("auth", "rejected")
        summary = aggregator.get_error_summary()
        assert summary["network"] == {"count": 2, "last_message": "second"}
        assert summary["auth"]["count"] == 1

    def test_entries_are_capped(self):
        aggregator = ErrorAggregator(max_per_type=3)
        for i in range(10):
            aggregator.record_error("network", f"m{i}")
        assert aggregator.get_error_summary()["network"] == {"count": 3, "last_message": "m9"}

    def test_summary_report_logs(self, caplog):
        aggregator = ErrorAggregator()
        aggregator.record_error("config", "bad file")
        aggregator.log_summary_report()
        assert "ERROR SUMMARY REPORT" in caplog.text
        assert "config: 1 total" in caplog.text


def test_structured_error_at_custom_level(caplog):
    caplog.set_level(logging.WARNING)
    log_structured_error("config", "Connect aborted", context={"user": "-"}, level=logging.WARNING)
    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.getMessage() == "[CONFIG] Connect aborted | Context: user=-"


def test_debug_requested(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    assert debug_requested() is False
    assert debug_requested(True) is True
    monkeypatch.setenv("DEBUG", "yes")
    assert debug_requested() is True


def test_configure_installs_colored_handler(monkeypatch, restore_root_logger):
    monkeypatch.delenv("DEBUG", raising=False)
    configurator = LoggerConfigurator()
    monkeypatch.setattr("atexit.register", lambda fn: fn)

    assert configurator.configure() == logging.INFO
    (handler,) = restore_root_logger.handlers
    assert isinstance(handler.formatter, colorlog.ColoredFormatter)

    configurator.set_debug(True)
    assert restore_root_logger.level == logging.DEBUG
    configurator.set_debug(False)
    assert restore_root_logger.level == logging.INFO
