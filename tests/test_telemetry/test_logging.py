"""Tests for structured logging and trace context."""

import logging

import pytest
import structlog

from wildcard_bridge.telemetry import TraceContext, configure_logging, get_logger
from wildcard_bridge.telemetry.logger import _add_component, _add_component_from_event_dict


class TestTraceContext:
    """Test TraceContext."""

    def test_new_trace_ids_are_unique(self) -> None:
        assert TraceContext.new_trace().trace_id != TraceContext.new_trace().trace_id

    def test_new_span_keeps_trace_id(self) -> None:
        trace = TraceContext.new_trace()
        child, span_id = trace.new_span()
        assert child.trace_id == trace.trace_id
        assert child.parent_span_id == span_id

    def test_trace_context_is_frozen(self) -> None:
        trace = TraceContext.new_trace()
        with pytest.raises(AttributeError):
            trace.trace_id = "other"  # type: ignore[misc]


class TestLogger:
    """Test logger configuration."""

    def test_get_logger_configures_structlog(self) -> None:
        log = get_logger("wildcard_bridge.test")
        assert structlog.is_configured()
        log.info("test_event", value=1)

    def test_configure_logging_writes_json_file(
        self, tmp_path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(
            "wildcard_bridge.telemetry.logger._get_log_dir", lambda: tmp_path
        )
        configure_logging()
        structlog.get_logger("wildcard_bridge.telemetry_test").info("file_event", n=3)
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = (tmp_path / "current.jsonl").read_text(encoding="utf-8")
        assert '"event": "file_event"' in content
        assert '"component": "telemetry_test"' in content

    def test_third_party_loggers_silenced(self) -> None:
        configure_logging()
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("stripe").level == logging.WARNING

    def test_component_processors(self) -> None:
        event = _add_component_from_event_dict(None, "info", {"logger": "a.b.executor"})
        assert event["component"] == "executor"
        assert _add_component(None, "info", {})["component"] == "unknown"  # type: ignore[arg-type]
