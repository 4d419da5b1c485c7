"""Tests for torrentdeck.utils.logging_config."""

from __future__ import annotations

import io
import json
import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from torrentdeck.models import LogLevel, ObservabilityConfig
from torrentdeck.utils.exceptions import EngineError
from torrentdeck.utils.rich_logging import CorrelationRichHandler, create_rich_handler
from torrentdeck.utils.logging_config import (
    CorrelationFilter,
    LoggingContext,
    StructuredFormatter,
    build_logging_config,
    get_correlation_id,
    get_logger,
    log_exception,
    set_correlation_id,
    setup_logging,
)

pytestmark = [pytest.mark.unit, pytest.mark.observability]


def _record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("torrentdeck.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Formatters and the correlation filter."""

    def test_correlation_filter_defaults(self):
        set_correlation_id("abc")
        record = _record()
        assert CorrelationFilter().filter(record) is True
        assert record.correlation_id == "abc"

    def test_structured_formatter_emits_json_with_extras(self):
        record = _record(correlation_id="c1", torrent_id=7)
        payload = json.loads(StructuredFormatter().format(record))
        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "torrentdeck.test"
        assert payload["correlation_id"] == "c1"
        assert payload["torrent_id"] == 7

    def test_rich_handler_prefixes_short_correlation_id(self):
        buffer = io.StringIO()
        handler = create_rich_handler(console=Console(file=buffer, width=120))
        handler.emit(
            _record(level=logging.WARNING, correlation_id="c2c2c2c2-0000-4000")
        )
        output = buffer.getvalue()
        assert "WARNING" in output
        assert "[c2c2c2c2] hello" in output
        assert "0000-4000" not in output

    def test_rich_handler_without_correlation_id(self):
        buffer = io.StringIO()
        handler = create_rich_handler(console=Console(file=buffer, width=120))
        handler.emit(_record(correlation_id="no-correlation-id"))
        output = buffer.getvalue()
        assert "hello" in output
        assert "no-correlation-id" not in output


class TestSetup:
    """dictConfig construction and installation."""

    def test_tui_session_without_file_uses_null_handler(self):
        config = build_logging_config(ObservabilityConfig(), console=False)
        assert list(config["handlers"]) == ["null"]
        assert config["loggers"]["torrentdeck"]["propagate"] is False

    def test_console_and_structured_file(self, tmp_path):
        obs = ObservabilityConfig(
            log_file=str(tmp_path / "x.log"), structured_logging=True
        )
        config = build_logging_config(obs, console=True)
        assert set(config["handlers"]) == {"console", "file"}
        assert config["handlers"]["file"]["formatter"] == "structured"
        assert config["handlers"]["console"]["formatter"] == "structured"

    def test_plain_console_uses_rich_handler(self):
        config = build_logging_config(ObservabilityConfig(), console=True)
        console = config["handlers"]["console"]
        assert console["()"] is create_rich_handler
        assert console["filters"] == ["correlation"]
        assert "formatter" not in console

    def test_setup_logging_installs_rich_console(self):
        setup_logging(ObservabilityConfig(), console=True)
        handlers = logging.getLogger("torrentdeck").handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0], RichHandler)
        assert isinstance(handlers[0], CorrelationRichHandler)
        assert any(isinstance(f, CorrelationFilter) for f in handlers[0].filters)

    def test_setup_logging_writes_to_file(self, tmp_path):
        log_file = tmp_path / "logs" / "torrentdeck.log"
        setup_logging(
            ObservabilityConfig(log_level=LogLevel.DEBUG, log_file=str(log_file))
        )
        get_logger("effects").debug("retry attempt %d", 2)
        logging.getLogger("other").warning("not ours")
        text = log_file.read_text(encoding="utf-8")
        assert "torrentdeck.effects: retry attempt 2" in text
        assert "not ours" not in text
        assert get_correlation_id() is not None

    def test_get_logger_namespaces(self):
        assert get_logger("x").name == "torrentdeck.x"
        assert get_logger("torrentdeck.y").name == "torrentdeck.y"


class TestLoggingContext:
    """Operation timing and failure logging."""

    def test_success_logs_at_debug(self, caplog):
        logger = get_logger("ctx")
        with caplog.at_level(logging.DEBUG, logger="torrentdeck"):
            with LoggingContext("effect Refresh", logger):
                pass
        assert "Starting effect Refresh" in caplog.text
        assert "Completed effect Refresh" in caplog.text

    def test_failure_is_logged_and_propagates(self, caplog):
        logger = get_logger("ctx")
        with caplog.at_level(logging.WARNING, logger="torrentdeck"):
            with pytest.raises(RuntimeError):
                with LoggingContext("effect TogglePause", logger):
                    raise RuntimeError("boom")
        assert "Failed effect TogglePause" in caplog.text
        assert "boom" in caplog.text

    def test_context_sets_new_correlation_id(self):
        set_correlation_id("before")
        with LoggingContext("op"):
            assert get_correlation_id() != "before"


def test_log_exception_includes_details(caplog):
    logger = get_logger("cli")
    exc = EngineError("refused", details={"url": "http://x"}, operation="error listing torrents")
    with caplog.at_level(logging.ERROR, logger="torrentdeck"):
        log_exception(logger, exc, "status")
    record = caplog.records[-1]
    assert record.getMessage() == "status: error listing torrents: refused"
    assert record.details == {"url": "http://x"}
