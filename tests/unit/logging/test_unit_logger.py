# tests/unit/logging/test_unit_logger.py — v1
"""Tests for logging/logger.py — logger factory and formatters."""

from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from acrocheck.logging.context import clear_context, set_batch_context, set_file_context
from acrocheck.logging.logger import JsonFormatter, TextFormatter, setup_logging


def _record(msg: str = "Hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "context" not in parsed

    def test_format_with_context(self):
        set_batch_context("batch-1")
        set_file_context("docs/a.md", "batch_check")
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["context"] == {
            "batch_id": "batch-1", "file_path": "docs/a.md", "operation": "batch_check",
        }

    def test_format_with_data(self):
        parsed = json.loads(JsonFormatter().format(_record(data={"attempt": 2})))
        assert parsed["data"] == {"attempt": 2}

    def test_format_exception(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = _record()
            record.exc_info = sys.exc_info()
        parsed = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in parsed["exception"]


class TestTextFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_context(self):
        set_batch_context("batch-1")
        set_file_context("docs/a.md", "auto_check")
        output = TextFormatter().format(_record())
        assert "[batch-1]" in output
        assert "(auto_check)" in output


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("acrocheck")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text(self):
        setup_logging(level="INFO", log_format="text")
        root = logging.getLogger("acrocheck")
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_reinit_does_not_duplicate(self):
        setup_logging()
        setup_logging()
        assert len(logging.getLogger("acrocheck").handlers) == 1

    def test_quiets_http_libraries(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_log_file(self, tmp_path: Path):
        log_file = tmp_path / "logs" / "acrocheck.log"
        setup_logging(log_file=str(log_file), rotation="1MB", retention=2)
        root = logging.getLogger("acrocheck")
        file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        root.info("written to file")
        file_handlers[0].flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
        for handler in file_handlers:
            handler.close()
        root.handlers.clear()
