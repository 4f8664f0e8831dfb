"""SQLite implementation of the :class:`contracts.interfaces.DatabaseSink` protocol.

This is the storage boundary. Every generated statement quotes identifiers, and
every value goes through a ``?`` placeholder.

Transaction behavior relies on the ``sqlite3`` module defaults: DDL runs
outside a transaction (a successful DROP is durable immediately), the first
INSERT opens a transaction and :meth:`SqliteSink.finalize` commits it. A failed
INSERT only aborts its own statement, so the rows around it still commit.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from contracts.conversion import TableSpec

logger = logging.getLogger(__name__)


class SqliteSink:
    """Own one ``sqlite3`` connection for the duration of a conversion run."""

    def __init__(self, path: str | Path, *, timeout: float = 5.0) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(str(self.path), timeout=timeout)
        self._insert_cur: Optional[sqlite3.Cursor] = None
        self._insert_sql: Optional[str] = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise sqlite3.ProgrammingError(f"sink already closed: {self.path}")
        return self._conn

    def drop_table(self, spec: TableSpec) -> None:
        self._connection().execute(spec.drop_sql())

    def create_table(self, spec: TableSpec) -> None:
        self._connection().execute(spec.create_sql())

    def insert_row(self, spec: TableSpec, values: Sequence[str]) -> None:
        # One cursor and one SQL string for the whole run: sqlite3 keeps the
        # compiled statement in its cache, which is the prepared-statement path.
        cur, sql = self._insert_cur, self._insert_sql
        if cur is None or sql is None:
            cur, sql = self._connection().cursor(), spec.insert_sql()
            self._insert_cur, self._insert_sql = cur, sql
        cur.execute(sql, tuple(values))

    def finalize(self) -> None:
        if self._insert_cur is not None:
            self._insert_cur.close()
            self._insert_cur = None
            self._insert_sql = None
        self._connection().commit()

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is None:
            return
        if self._insert_cur is not None:
            try:
                self._insert_cur.close()
            except sqlite3.Error as exc:
                logger.warning("Failed to close insert cursor for %s: %s", self.path, exc)
            self._insert_cur = None
        conn.close()
