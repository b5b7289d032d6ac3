"""
Tests for shared infrastructure: settings, structured logging, correlation
IDs and log sanitization.
"""

import json
import logging

import pytest
from fastapi.testclient import TestClient

from arrival_gateway.components.core.context import sanitize_log_data
from arrival_gateway.main import create_app
from arrival_shared.config.logging import (
    DevelopmentFormatter,
    StructuredFormatter,
    StructuredLogger,
    get_logger,
    setup_logging,
)
from arrival_shared.config.settings import Settings
from arrival_shared.infrastructure.correlation import (
    CorrelationIdFilter,
    bind_correlation_id,
    get_request_id,
    request_id_var,
)


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture
def captured():
    logger = get_logger("tests.captured")
    handler = _ListHandler()
    handler.addFilter(CorrelationIdFilter())
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger, handler
    logger.removeHandler(handler)


class TestSettings:
    def test_defaults(self, tmp_path):
        (tmp_path / "index.html").write_text("ok")
        settings = Settings(static_dir=tmp_path)

        assert settings.port == 3000
        assert settings.ws_max_message_size == 64 * 1024
        assert settings.validate_production_settings() == []

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("PORT", "8081")

        assert Settings().port == 8081

    def test_production_checks(self, tmp_path):
        settings = Settings(environment="production", debug=True, allowed_origins="", static_dir=tmp_path)

        problems = settings.validate_production_settings()

        assert any("DEBUG" in p for p in problems)
        assert any("ALLOWED_ORIGINS" in p for p in problems)
        assert any("index.html" in p for p in problems)


class TestStructuredLogging:
    def test_logger_class(self):
        assert isinstance(get_logger("arrival_gateway.anything"), StructuredLogger)

    def test_keyword_arguments_become_extra_data(self, captured):
        logger, handler = captured

        logger.info("Recipient connected", recipient="Alice", connections=2)

        record = handler.records[-1]
        assert record.getMessage() == "Recipient connected"
        assert record.extra_data == {"recipient": "Alice", "connections": 2}

    def test_json_formatter(self, captured):
        logger, handler = captured
        token = bind_correlation_id("conn-1")
        try:
            logger.warning("Outbox full", pending=100)
        finally:
            request_id_var.reset(token)

        payload = json.loads(StructuredFormatter().format(handler.records[-1]))
        assert payload["level"] == "WARNING"
        assert payload["message"] == "Outbox full"
        assert payload["request_id"] == "conn-1"
        assert payload["data"] == {"pending": 100}

    def test_error_with_exc_info(self, captured):
        logger, handler = captured

        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("Unexpected error routing frame", exc_info=True)

        payload = json.loads(StructuredFormatter().format(handler.records[-1]))
        assert "ValueError: boom" in payload["exception"]

    def test_disabled_level_is_skipped(self, captured):
        logger, handler = captured
        logger.setLevel(logging.INFO)

        logger.debug("noise", detail="x")

        assert handler.records == []


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_production_settings_install_json_formatter(self, tmp_path):
        setup_logging(Settings(environment="production", debug=False, static_dir=tmp_path))

        root = logging.getLogger()
        formatter = root.handlers[0].formatter
        assert isinstance(formatter, StructuredFormatter)
        assert formatter.include_source is False
        assert root.level == logging.INFO

    def test_development_settings_install_readable_formatter(self, tmp_path):
        setup_logging(Settings(environment="development", debug=True, static_dir=tmp_path))

        root = logging.getLogger()
        assert isinstance(root.handlers[0].formatter, DevelopmentFormatter)
        assert root.level == logging.DEBUG

    def test_app_lifespan_uses_app_settings(self, tmp_path):
        (tmp_path / "index.html").write_text("ok")
        app = create_app(
            Settings(environment="production", debug=False, allowed_origins="https://desk.example", static_dir=tmp_path)
        )

        with TestClient(app):
            assert isinstance(logging.getLogger().handlers[0].formatter, StructuredFormatter)


class TestCorrelation:
    def test_default_is_empty(self):
        assert get_request_id() == ""

    def test_bind_and_reset(self):
        token = bind_correlation_id("abc")
        assert get_request_id() == "abc"
        request_id_var.reset(token)
        assert get_request_id() == ""

    def test_filter_stamps_placeholder(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", (), None)

        assert CorrelationIdFilter().filter(record) is True
        assert record.request_id == "-"


class TestSanitizeLogData:
    def test_plain_text_unchanged(self):
        assert sanitize_log_data("Dr. Alice") == "Dr. Alice"

    def test_control_and_bidi_characters_removed(self):
        assert sanitize_log_data("Ali\x00ce\n\u202eevil") == "Aliceevil"

    def test_quotes_escaped(self):
        assert sanitize_log_data('say "hi" \\') == 'say \\"hi\\" \\\\'

    def test_truncation(self):
        assert sanitize_log_data("x" * 20, max_length=5) == "xxxxx..."

    def test_bytes_decoded(self):
        assert sanitize_log_data(b"\xffok") == "\ufffdok"
