"""
Unit tests for CoreSettings and logging setup.
"""

import logging

import json_log_formatter
import pytest

from catalog.mvn_core.config import CoreSettings
from catalog.mvn_core.log import setup_logging


class TestCoreSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in (
            "MVN_LOG_LEVEL",
            "MVN_LOG_FORMAT",
            "MVN_RECOMPUTE_ON_UNIT_WRITE",
            "MVN_REQUIRE_USER_URN_TYPE",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = CoreSettings()
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"
        assert settings.recompute_on_unit_write is True
        assert settings.require_user_urn_type is True

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("MVN_LOG_FORMAT", "json")
        monkeypatch.setenv("MVN_RECOMPUTE_ON_UNIT_WRITE", "false")
        settings = CoreSettings()
        assert settings.log_format == "json"
        assert settings.recompute_on_unit_write is False

    def test_invalid_format_rejected(self, monkeypatch):
        monkeypatch.setenv("MVN_LOG_FORMAT", "xml")
        with pytest.raises(ValueError):
            CoreSettings()


class TestSetupLogging:
    """Tests for setup_logging()."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers = handlers
        root.setLevel(level)

    def test_json_format(self):
        setup_logging(CoreSettings(log_format="json", log_level="DEBUG"))
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)
        assert root.level == logging.DEBUG

    def test_text_format(self):
        setup_logging(CoreSettings(log_format="text", log_level="warning"))
        root = logging.getLogger()
        assert not isinstance(root.handlers[0].formatter, json_log_formatter.JSONFormatter)
        assert root.level == logging.WARNING
