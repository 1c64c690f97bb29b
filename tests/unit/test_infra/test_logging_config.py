"""Unit tests for logging configuration."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from logline.core.settings import LoggingSettings
from logline.infra.logging import config
from logline.infra.logging.config import (
    StructuredQueueHandler,
    complete,
    configure_logging,
    setup_logging,
    shutdown,
)
from logline.infra.logging.context import set_log_context
from logline.infra.logging.formatters import VendorJSONFormatter


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Keep dictConfig from leaking into other tests."""
    root = logging.getLogger()
    level = root.level
    yield
    shutdown()
    root.setLevel(level)
    logging.captureWarnings(False)


def read_lines(path: Path) -> list[dict]:
    complete()
    shutdown()
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


def test_json_file_logging_with_context(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "app.jsonl"
    configure_logging(log_level="INFO", file_path=log_file, console_enabled=False, service_name="svc")

    set_log_context(request_id="abc-123")
    logging.getLogger("logline.test").info("hello")
    logging.getLogger("logline.test").debug("dropped")

    lines = read_lines(log_file)

    assert len(lines) == 1
    assert lines[0]["message"] == "hello"
    assert lines[0]["service"] == "svc"
    assert lines[0]["request_id"] == "abc-123"


def test_mapping_messages_survive_the_queue(tmp_path: Path) -> None:
    log_file = tmp_path / "requests.jsonl"
    configure_logging(file_path=log_file, console_enabled=False)

    logging.getLogger("logline.test").info({"method": "GET", "path": "/api", "status": "200"})

    (line,) = read_lines(log_file)

    assert line["method"] == "GET"
    assert line["path"] == "/api"
    assert line["status"] == "200"
    assert "message" not in line


def test_text_logs(tmp_path: Path) -> None:
    log_file = tmp_path / "app.log"
    configure_logging(file_path=log_file, console_enabled=False, json_logs=False)

    logging.getLogger("logline.test").warning("plain %s", "text")
    complete()
    shutdown()

    content = log_file.read_text(encoding="utf-8")
    assert "WARNING - logline.test - plain text" in content


def test_vendor_trace_ids_select_vendor_formatter(tmp_path: Path) -> None:
    configure_logging(file_path=tmp_path / "app.jsonl", console_enabled=False, vendor_trace_ids=True)

    assert config._listener is not None
    assert all(isinstance(h.formatter, VendorJSONFormatter) for h in config._listener.handlers)


def test_reconfiguring_replaces_queue_handler(tmp_path: Path) -> None:
    configure_logging(file_path=tmp_path / "a.jsonl", console_enabled=False)
    configure_logging(file_path=tmp_path / "b.jsonl", console_enabled=False)

    queue_handlers = [h for h in logging.getLogger().handlers if isinstance(h, StructuredQueueHandler)]
    assert len(queue_handlers) == 1


def test_no_handlers_installs_nothing() -> None:
    configure_logging(console_enabled=False)

    assert config._listener is None
    assert not any(isinstance(h, StructuredQueueHandler) for h in logging.getLogger().handlers)


def test_setup_logging_runs_once(tmp_path: Path) -> None:
    settings = LoggingSettings(file_path=tmp_path / "app.jsonl", console_enabled=False, level="debug")

    setup_logging(settings)
    first = config._listener
    setup_logging(settings)

    assert config._listener is first
    assert logging.getLogger().level == logging.DEBUG

    setup_logging(settings, force=True)
    assert config._listener is not first


def test_setup_logging_reads_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("LOG_CONSOLE_ENABLED", "false")
    monkeypatch.setenv("LOG_FILE_PATH", str(tmp_path / "env.jsonl"))

    setup_logging()

    assert logging.getLogger().level == logging.WARNING
    assert config._listener is not None
