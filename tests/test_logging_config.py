"""Tests for the logging formatters and setup."""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator

import pytest

from infra.config import clear_settings_cache
from infra.logging_config import (
    JsonFormatter,
    LogContextFilter,
    TextFormatter,
    clear_log_context,
    get_log_context,
    set_log_context,
    setup_logging,
)


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_settings_cache()


def _record(msg: str = "row %s failed", *args: Any, **extra: Any) -> logging.LogRecord:
    record = logging.LogRecord(
        name="pipeline.materialize",
        level=logging.ERROR,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=args or (3,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_emits_valid_json_with_context_and_extras() -> None:
    set_log_context(table="people", source="data.csv")
    try:
        line = JsonFormatter(extra_fields={"app": "csv2sqlite"}).format(_record(row_number=3))
    finally:
        clear_log_context()

    payload = json.loads(line)
    assert payload["message"] == "row 3 failed"
    assert payload["level"] == "ERROR"
    assert payload["logger"] == "pipeline.materialize"
    assert payload["row_number"] == 3
    assert payload["app"] == "csv2sqlite"
    assert payload["table"] == "people"
    assert payload["source"] == "data.csv"
    assert payload["timestamp"].endswith("Z")


def test_json_formatter_escapes_quotes_and_newlines() -> None:
    line = JsonFormatter().format(_record('bad "value"\nnext line %s', 1))
    assert json.loads(line)["message"] == 'bad "value"\nnext line 1'


def test_text_formatter_layout() -> None:
    text = TextFormatter().format(_record())
    assert text.endswith("| ERROR | pipeline.materialize | row 3 failed")


def test_context_filter_feeds_text_formatter() -> None:
    record = _record()
    set_log_context(table="people")
    try:
        assert LogContextFilter().filter(record) is True
    finally:
        clear_log_context()

    assert record.log_context == {"table": "people"}
    assert TextFormatter().format(record).endswith("| row 3 failed [table=people]")
    assert json.loads(JsonFormatter().format(record))["table"] == "people"


def test_log_context_merge_and_clear() -> None:
    set_log_context(table="a")
    set_log_context(sink="out.db")
    assert get_log_context() == {"table": "a", "sink": "out.db"}
    clear_log_context()
    assert get_log_context() == {}


def test_setup_logging_override_installs_json_handler(
    restore_root_logger: None, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("CSV2SQLITE_LOG_LEVEL", "WARNING")
    cfg = setup_logging(json_logs=True, override_root_handlers=True)

    root = logging.getLogger()
    assert cfg.level == "WARNING"
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)


def test_setup_logging_keeps_existing_handlers_by_default(restore_root_logger: None) -> None:
    root = logging.getLogger()
    sentinel = logging.NullHandler()
    root.addHandler(sentinel)

    setup_logging(level="debug")

    assert sentinel in root.handlers
    assert root.level == logging.DEBUG
