"""Tests for settings defaults, env overrides and logging setup."""

from __future__ import annotations

import structlog

from scribe.config import Messages, Settings
from scribe.observability.log_setup import configure_logging


class TestSettings:
    def test_defaults_match_timing_contract(self):
        s = Settings(_env_file=None)
        assert s.request_timeout_s == 8.0
        assert s.debounce_s == 0.6
        assert s.cooldown_s == 1.5
        assert s.max_comment_chars == 15
        assert s.chat_endpoint.endswith("/chat")

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SCRIBE_DEBOUNCE_S", "0.25")
        monkeypatch.setenv("SCRIBE_CHAT_ENDPOINT", "http://localhost:9000/chat")
        s = Settings(_env_file=None)
        assert s.debounce_s == 0.25
        assert s.chat_endpoint == "http://localhost:9000/chat"

    def test_unrelated_env_is_ignored(self, monkeypatch):
        monkeypatch.setenv("SCRIBE_NOT_A_SETTING", "x")
        Settings(_env_file=None)

    def test_messages_are_distinct(self):
        texts = [
            value for key, value in vars(Messages).items()
            if key.isupper() and isinstance(value, str)
        ]
        assert len(texts) == len(set(texts))


class TestLogging:
    def test_configure_logging_console(self):
        configure_logging(level="DEBUG", env="development")
        structlog.get_logger().debug("configured_for_test")
        structlog.reset_defaults()

    def test_configure_logging_production_with_bad_level(self):
        configure_logging(level="nonsense", env="production")
        structlog.get_logger().info("configured_for_test")
        structlog.reset_defaults()
