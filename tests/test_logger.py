"""
Tests for Stepwright logging utilities.
"""

import json
import logging

import pytest
from rich.logging import RichHandler

from stepwright.monitoring.logger import (
    JSONFormatter,
    SanitizingHandler,
    get_logger,
    log_test_event,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Keep root logger handlers from leaking between tests."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _record(msg: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="stepwright.runner.executor",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_context_fields() -> None:
    """Known context extras are copied onto the JSON line."""
    output = JSONFormatter().format(
        _record("Test event: step_failed", test_case_id="tc-1", step_id="s2", error="boom")
    )

    data = json.loads(output)

    assert data["level"] == "INFO"
    assert data["logger"] == "stepwright.runner.executor"
    assert data["message"] == "Test event: step_failed"
    assert data["test_case_id"] == "tc-1"
    assert data["step_id"] == "s2"
    assert data["error"] == "boom"


def test_json_formatter_sanitizes() -> None:
    """Credentials in messages and extras are redacted."""
    output = JSONFormatter().format(
        _record("Request failed for apiKey=sk-abcdefghijklmnopqrstuv", error="password=hunter2")
    )

    assert "abcdefghijklmnop" not in output
    assert "hunter2" not in output


def test_json_formatter_without_sanitizing() -> None:
    """Sanitization can be disabled."""
    output = JSONFormatter(sanitize=False).format(_record("password=hunter2"))

    assert "hunter2" in json.loads(output)["message"]


def test_sanitizing_handler_wraps_handler() -> None:
    """The wrapped handler receives the sanitized record."""
    received = []

    class Collector(logging.Handler):
        def emit(self, record):
            received.append(record.getMessage())

    handler = SanitizingHandler(Collector())
    handler.emit(_record("password=hunter2"))

    assert received == ["password=[PASSWORD]"]


def test_setup_logging_text_uses_rich() -> None:
    """Text format logs through a sanitized Rich handler."""
    root = setup_logging(log_level="DEBUG", log_format="text", sanitize_logs=True)

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, SanitizingHandler)
    assert isinstance(handler.handler, RichHandler)
    assert logging.getLogger("openai").level == logging.WARNING


def test_setup_logging_json_with_file(tmp_path) -> None:
    """JSON format writes sanitized JSON lines to the log file."""
    log_file = tmp_path / "run.log"
    setup_logging(log_level="INFO", log_format="json", log_file=str(log_file))

    logging.getLogger("stepwright.test").info(
        "Saved model configuration with api_key=sk-abcdefghijklmnopqrstuv"
    )
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = log_file.read_text(encoding="utf-8").strip().splitlines()
    data = json.loads(lines[-1])
    assert data["logger"] == "stepwright.test"
    assert "abcdefghijklmnop" not in lines[-1]


def test_get_logger_with_context() -> None:
    """Context passed to get_logger is merged into every record."""
    records = []

    class Collector(logging.Handler):
        def emit(self, record):
            records.append(record)

    base = logging.getLogger("stepwright.context_test")
    base.addHandler(Collector())
    base.setLevel(logging.INFO)

    logger = get_logger("stepwright.context_test", test_case_id="tc-9")
    logger.info("hello", extra={"step_id": "s1"})

    assert records[0].test_case_id == "tc-9"
    assert records[0].step_id == "s1"


def test_log_test_event(caplog) -> None:
    """Lifecycle events carry their type and ids."""
    with caplog.at_level(logging.INFO, logger="stepwright.test_events"):
        log_test_event("step_completed", "tc-1", step_id="s1", data={"duration_ms": 12})

    record = caplog.records[-1]
    assert record.getMessage() == "Test event: step_completed"
    assert record.event_type == "step_completed"
    assert record.test_case_id == "tc-1"
    assert record.step_id == "s1"
    assert record.duration_ms == 12
