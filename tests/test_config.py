"""Tests for settings and logging setup."""

from __future__ import annotations

import json
import logging

import pytest
from pydantic import ValidationError

from config import Settings, get_settings
from logs import HANDLER_NAME, JSONFormatter, setup_logging


class TestSettings:

    def test_defaults(self, monkeypatch):
        for var in ("SAFECALC_LOG_LEVEL", "SAFECALC_LOG_FORMAT", "SAFECALC_TITLE"):
            monkeypatch.delenv(var, raising=False)
        s = Settings(_env_file=None)
        assert s.log_level == "INFO"
        assert s.log_format == "text"
        assert s.title == "SafeCalc API"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SAFECALC_LOG_LEVEL", "debug")
        monkeypatch.setenv("SAFECALC_LOG_FORMAT", "json")
        s = Settings(_env_file=None)
        assert s.log_level == "DEBUG"
        assert s.log_format == "json"

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")

    def test_unknown_format_rejected(self):
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_get_settings_cached(self):
        get_settings.cache_clear()
        assert get_settings() is get_settings()


class TestLogging:

    def _record(self, **extra):
        record = logging.LogRecord(
            "calculator", logging.ERROR, __file__, 1, "failed %s", ("add",), None
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter(self):
        out = json.loads(JSONFormatter().format(
            self._record(operation="addition", error_code="CALC_101")
        ))
        assert out["level"] == "ERROR"
        assert out["logger"] == "calculator"
        assert out["message"] == "failed add"
        assert out["operation"] == "addition"
        assert out["error_code"] == "CALC_101"
        assert "timestamp" in out

    def test_json_formatter_omits_missing_extras(self):
        out = json.loads(JSONFormatter().format(self._record()))
        assert "operation" not in out
        assert "error_code" not in out

    def test_setup_replaces_own_handler(self):
        root = logging.getLogger()
        setup_logging("INFO", "text")
        handler = setup_logging("WARNING", "json")
        ours = [h for h in root.handlers if h.get_name() == HANDLER_NAME]
        assert ours == [handler]
        assert isinstance(handler.formatter, JSONFormatter)
        assert root.level == logging.WARNING
