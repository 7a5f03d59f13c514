"""Tests for structured logging setup."""

from __future__ import annotations

import json
import logging

from hotdrop.observability import JSONFormatter, setup_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "hotdrop.test", logging.INFO, __file__, 1, "Published %s", ("abc",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_basic_fields(self):
        payload = json.loads(JSONFormatter().format(_record()))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "hotdrop.test"
        assert payload["message"] == "Published abc"
        assert "timestamp" in payload

    def test_extra_fields(self):
        payload = json.loads(JSONFormatter().format(_record(deployment="d" * 64)))
        assert payload["deployment"] == "d" * 64

    def test_unknown_extras_ignored(self):
        payload = json.loads(JSONFormatter().format(_record(secret="x")))
        assert "secret" not in payload


class TestSetupLogging:
    def test_replaces_previous_handler(self):
        before = list(logging.root.handlers)
        level = logging.root.level
        first = setup_logging("DEBUG", "json")
        second = setup_logging("WARNING", "text")
        try:
            assert first not in logging.root.handlers
            assert second in logging.root.handlers
            assert logging.root.level == logging.WARNING
            assert not isinstance(second.formatter, JSONFormatter)
        finally:
            logging.root.removeHandler(second)
            logging.root.setLevel(level)
            for handler in before:
                if handler not in logging.root.handlers:
                    logging.root.addHandler(handler)
