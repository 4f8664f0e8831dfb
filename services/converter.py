"""CSV → SQLite conversion orchestration.

:class:`CsvConverter` runs header resolution, row collection and table
materialization in sequence and returns one :class:`ConversionOutcome`. It
never prints: progress and the terminal message belong to the caller.

Structural failures (unreadable/malformed source, drop/create, finalize/close)
become a FAILED outcome carrying the first error message. Per-row insert
failures are logged and counted but the run still succeeds.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from pathlib import Path

from contracts.conversion import (
    ConversionError,
    ConversionOutcome,
    ConversionRequest,
    OutcomeKind,
    SinkStructureError,
    TableSpec,
)
from contracts.interfaces import DatabaseSink
from infra.config import ConverterConfig, get_settings
from infra.logging_config import clear_log_context, set_log_context
from pipeline.materialize import materialize_table
from pipeline.rows import read_source
from pipeline.writer_sqlite import SqliteSink

logger = logging.getLogger(__name__)

SinkFactory = Callable[[Path], DatabaseSink]


class CsvConverter:
    """Convert one CSV file into one SQLite table per request."""

    def __init__(
        self,
        *,
        config: ConverterConfig | None = None,
        sink_factory: SinkFactory | None = None,
    ) -> None:
        self._config = config or get_settings().converter
        self._sink_factory: SinkFactory = sink_factory or SqliteSink

    def run(self, request: ConversionRequest) -> ConversionOutcome:
        """Run the whole pipeline synchronously."""
        set_log_context(
            source=str(request.source_path),
            sink=str(request.sink_path),
            table=request.table_name,
        )
        try:
            return self._run(request)
        except (ConversionError, OSError) as exc:
            logger.error("Conversion of %s failed: %s", request.source_path, exc)
            return ConversionOutcome(kind=OutcomeKind.FAILED, request=request, error=str(exc))
        finally:
            clear_log_context()

    async def convert(self, request: ConversionRequest) -> ConversionOutcome:
        """Async entry point; the pipeline itself runs in a worker thread."""
        return await asyncio.to_thread(self.run, request)

    def _run(self, request: ConversionRequest) -> ConversionOutcome:
        cfg = self._config
        collected = read_source(
            request.source_path,
            has_header=request.has_header,
            encoding=cfg.encoding,
            delimiter=cfg.delimiter,
            strict_field_count=cfg.strict_field_count,
        )
        if collected is None:
            return ConversionOutcome(kind=OutcomeKind.EMPTY, request=request)

        if collected.short_rows or collected.truncated_rows:
            logger.info(
                "%s rows shorter than the header will be padded, %s longer rows were truncated",
                collected.short_rows,
                collected.truncated_rows,
            )

        try:
            spec = TableSpec(name=request.table_name, columns=tuple(collected.columns))
        except ValueError as exc:
            raise SinkStructureError(str(exc)) from exc

        try:
            sink = self._sink_factory(request.sink_path)
        except sqlite3.Error as exc:
            raise SinkStructureError(f"Error opening database '{request.sink_path}': {exc}") from exc

        stats = materialize_table(sink, spec, collected.rows)
        logger.info(
            "Imported %s rows from %s into %s.%s",
            stats.rows_inserted,
            request.source_path,
            request.sink_path,
            spec.name,
        )
        return ConversionOutcome(
            kind=OutcomeKind.IMPORTED,
            request=request,
            rows_imported=stats.rows_inserted,
            rows_failed=stats.rows_failed,
            columns=spec.columns,
        )


async def convert(
    request: ConversionRequest,
    *,
    config: ConverterConfig | None = None,
) -> ConversionOutcome:
    """Convert with default settings and the SQLite sink."""
    return await CsvConverter(config=config).convert(request)
