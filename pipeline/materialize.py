"""Table materialization: drop, create, insert, finalize, close.

Steps run in strict order against a :class:`contracts.interfaces.DatabaseSink`:

1. drop the existing table (reruns overwrite, never append)
2. create one TEXT column per resolved name
3. insert every buffered row in source order; a column missing from a row
   gets ``""`` (never NULL)
4. finalize (commit) and close

A failing drop/create aborts before any insert. A failing insert is logged and
counted, and the remaining rows are still attempted. Finalize/close failures
are fatal but happen after every row was attempted.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from contracts.conversion import SinkFinalizeError, SinkStructureError, TableSpec
from contracts.interfaces import DatabaseSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaterializeStats:
    rows_inserted: int
    rows_failed: int


def row_values(columns: Sequence[str], row: Mapping[str, str]) -> list[str]:
    """Values of *row* in column order, ``""`` for absent or empty cells."""
    return [row.get(name) or "" for name in columns]


def materialize_table(
    sink: DatabaseSink,
    spec: TableSpec,
    rows: Sequence[Mapping[str, str]],
) -> MaterializeStats:
    """Replace ``spec.name`` in *sink* with a table holding *rows*.

    The sink is always closed before returning or raising.
    """
    try:
        try:
            sink.drop_table(spec)
        except sqlite3.Error as exc:
            raise SinkStructureError(f"Error dropping existing table: {exc}") from exc

        try:
            sink.create_table(spec)
        except sqlite3.Error as exc:
            raise SinkStructureError(f"Error creating table: {exc}") from exc

        inserted = 0
        failed = 0
        for number, row in enumerate(rows, start=1):
            try:
                sink.insert_row(spec, row_values(spec.columns, row))
            except sqlite3.Error as exc:
                failed += 1
                logger.error("Error inserting row %s into %s: %s", number, spec.name, exc)
                continue
            inserted += 1

        try:
            sink.finalize()
        except sqlite3.Error as exc:
            raise SinkFinalizeError(f"Error finalizing statement: {exc}") from exc
    except BaseException:
        try:
            sink.close()
        except sqlite3.Error as close_exc:
            logger.warning("Failed to close sink after error: %s", close_exc)
        raise

    try:
        sink.close()
    except sqlite3.Error as exc:
        raise SinkFinalizeError(f"Error closing database: {exc}") from exc

    logger.info("Materialized %s: %s rows inserted, %s failed", spec.name, inserted, failed)
    return MaterializeStats(rows_inserted=inserted, rows_failed=failed)
