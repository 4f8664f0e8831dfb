"""Logging setup for the converter.

Two output styles share one handler on the root logger:

- text: ``2026-01-24T18:03:12Z | INFO | services.converter | message [table=people]``
- JSON: one object per line, always valid JSON

Records are written to stderr; stdout carries only what the CLI prints for
the user. While a conversion runs, :func:`set_log_context` attaches the
source, sink and table to every record through :class:`LogContextFilter`.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from infra.config import get_settings

_log_ctx: ContextVar[dict[str, Any] | None] = ContextVar("csv2sqlite_log_ctx", default=None)

# Attributes every LogRecord carries; anything else arrived through `extra=`
# or the log context.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "log_context",
}


def set_log_context(**fields: Any) -> None:
    """Merge *fields* into the context attached to subsequent records."""
    merged = dict(_log_ctx.get() or {})
    merged.update(fields)
    _log_ctx.set(merged)


def clear_log_context() -> None:
    _log_ctx.set({})


def get_log_context() -> dict[str, Any]:
    return dict(_log_ctx.get() or {})


class LogContextFilter(logging.Filter):
    """Copy the current log context onto each record as ``record.log_context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.log_context = get_log_context()
        return True


class JsonFormatter(logging.Formatter):
    """Serialize a record, its extras and its log context as a single JSON line."""

    def __init__(self, *, extra_fields: Mapping[str, Any] | None = None) -> None:
        super().__init__()
        self._static = dict(extra_fields or {})

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        doc: dict[str, Any] = {
            "timestamp": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
        }
        layers = (
            {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS},
            self._static,
            getattr(record, "log_context", None) or get_log_context(),
        )
        for layer in layers:
            for key, value in layer.items():
                doc.setdefault(key, value)
        if record.exc_info:
            doc["exception"] = self.formatException(record.exc_info)
        return json.dumps(doc, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Pipe-separated lines with UTC timestamps; the log context is appended in brackets."""

    converter = time.gmtime

    def __init__(self) -> None:
        super().__init__("%(asctime)sZ | %(levelname)s | %(name)s | %(message)s", "%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        ctx = getattr(record, "log_context", None)
        if ctx:
            line += " [" + " ".join(f"{k}={v}" for k, v in ctx.items()) + "]"
        return line


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    json_logs: bool = False
    override_root_handlers: bool = False


def setup_logging(
    *,
    level: str | None = None,
    json_logs: bool | None = None,
    override_root_handlers: bool | None = None,
    extra_fields: Mapping[str, Any] | None = None,
) -> LoggingConfig:
    """Install the converter's handler on the root logger.

    Keyword arguments (CLI flags) win over ``CSV2SQLITE_LOG_LEVEL``,
    ``CSV2SQLITE_LOG_JSON`` and ``CSV2SQLITE_LOG_OVERRIDE``. Unless override is
    requested, a root logger that already has handlers is left as it is and
    only its level changes.
    """
    env = get_settings(reload=True).logging
    cfg = LoggingConfig(
        level=(level or env.level).upper(),
        json_logs=env.json_logs if json_logs is None else json_logs,
        override_root_handlers=env.override_root_handlers
        if override_root_handlers is None
        else override_root_handlers,
    )

    root = logging.getLogger()
    root.setLevel(getattr(logging, cfg.level, logging.INFO))

    if root.handlers and not cfg.override_root_handlers:
        return cfg

    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(LogContextFilter())
    handler.setFormatter(JsonFormatter(extra_fields=extra_fields) if cfg.json_logs else TextFormatter())

    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    return cfg
