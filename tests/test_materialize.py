"""Unit tests for table materialization and the SQLite sink."""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any, List, Optional, Tuple

import pytest

from contracts.conversion import SinkFinalizeError, SinkStructureError, TableSpec
from contracts.interfaces import DatabaseSink
from pipeline.materialize import materialize_table, row_values
from pipeline.writer_sqlite import SqliteSink


class _FakeSink:
    """Record sink calls; optionally fail on a given step or row value."""

    def __init__(
        self,
        *,
        fail_on: Optional[str] = None,
        fail_row_value: Optional[str] = None,
    ) -> None:
        self.calls: List[Tuple[str, Any]] = []
        self._fail_on = fail_on
        self._fail_row_value = fail_row_value

    def _step(self, name: str, payload: Any = None) -> None:
        self.calls.append((name, payload))
        if self._fail_on == name:
            raise sqlite3.OperationalError(f"{name} failed")

    def drop_table(self, spec: TableSpec) -> None:
        self._step("drop", spec.name)

    def create_table(self, spec: TableSpec) -> None:
        self._step("create", spec.columns)

    def insert_row(self, spec: TableSpec, values: Sequence[str]) -> None:
        self.calls.append(("insert", list(values)))
        if self._fail_row_value is not None and self._fail_row_value in values:
            raise sqlite3.IntegrityError("row rejected")

    def finalize(self) -> None:
        self._step("finalize")

    def close(self) -> None:
        self._step("close")

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]


_SPEC = TableSpec(name="people", columns=("name", "age"))


def test_sinks_satisfy_protocol(tmp_path: Path) -> None:
    sqlite_sink = SqliteSink(tmp_path / "out.db")
    try:
        assert isinstance(sqlite_sink, DatabaseSink)
    finally:
        sqlite_sink.close()
    assert isinstance(_FakeSink(), DatabaseSink)


def test_row_values_pads_missing_columns_with_empty_string() -> None:
    assert row_values(("a", "b", "c"), {"a": "1"}) == ["1", "", ""]
    assert row_values(("a",), {"a": None}) == [""]  # type: ignore[dict-item]


def test_materialize_runs_steps_in_order() -> None:
    sink = _FakeSink()
    stats = materialize_table(sink, _SPEC, [{"name": "Alice", "age": "30"}, {"name": "Bob"}])

    assert sink.names() == ["drop", "create", "insert", "insert", "finalize", "close"]
    assert sink.calls[2] == ("insert", ["Alice", "30"])
    assert sink.calls[3] == ("insert", ["Bob", ""])
    assert stats.rows_inserted == 2
    assert stats.rows_failed == 0


@pytest.mark.parametrize(("step", "message"), [("drop", "dropping"), ("create", "creating")])
def test_materialize_structural_failure_aborts_before_inserts(step: str, message: str) -> None:
    sink = _FakeSink(fail_on=step)

    with pytest.raises(SinkStructureError, match=f"Error {message}"):
        materialize_table(sink, _SPEC, [{"name": "Alice", "age": "30"}])

    assert "insert" not in sink.names()
    assert sink.names()[-1] == "close"


def test_materialize_row_failure_is_logged_and_skipped(caplog: pytest.LogCaptureFixture) -> None:
    sink = _FakeSink(fail_row_value="bad")
    rows = [{"name": "Alice"}, {"name": "bad"}, {"name": "Carol"}]

    with caplog.at_level(logging.ERROR, logger="pipeline.materialize"):
        stats = materialize_table(sink, _SPEC, rows)

    assert stats.rows_inserted == 2
    assert stats.rows_failed == 1
    assert sink.names() == ["drop", "create", "insert", "insert", "insert", "finalize", "close"]
    assert "Error inserting row 2" in caplog.text


def test_materialize_finalize_failure_is_fatal_after_all_rows() -> None:
    sink = _FakeSink(fail_on="finalize")

    with pytest.raises(SinkFinalizeError, match="Error finalizing statement"):
        materialize_table(sink, _SPEC, [{"name": "a"}, {"name": "b"}])

    assert sink.names().count("insert") == 2
    assert sink.names()[-1] == "close"


def test_materialize_close_failure_is_fatal() -> None:
    sink = _FakeSink(fail_on="close")

    with pytest.raises(SinkFinalizeError, match="Error closing database"):
        materialize_table(sink, _SPEC, [{"name": "a"}])


def _fetch(db_path: Path, sql: str) -> list[tuple[Any, ...]]:
    conn = sqlite3.connect(str(db_path))
    try:
        return conn.execute(sql).fetchall()
    finally:
        conn.close()


def test_sqlite_sink_writes_text_columns(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "out.db"
    spec = TableSpec(name="t", columns=("order", "1st", "plain"))

    stats = materialize_table(SqliteSink(db_path), spec, [{"order": "x", "1st": "7"}])

    assert stats.rows_inserted == 1
    columns = _fetch(db_path, 'PRAGMA table_info("t")')
    assert [(c[1], c[2]) for c in columns] == [("order", "TEXT"), ("1st", "TEXT"), ("plain", "TEXT")]
    assert _fetch(db_path, 'SELECT "order", "1st", plain FROM t') == [("x", "7", "")]


def test_sqlite_sink_duplicate_columns_fail_create(tmp_path: Path) -> None:
    db_path = tmp_path / "out.db"
    spec = TableSpec(name="t", columns=("a", "a"))

    with pytest.raises(SinkStructureError, match="Error creating table"):
        materialize_table(SqliteSink(db_path), spec, [{"a": "1"}])

    assert _fetch(db_path, "SELECT name FROM sqlite_master WHERE type='table'") == []


def test_sqlite_sink_keeps_rows_around_a_failed_insert(tmp_path: Path) -> None:
    """Rows around a rejected insert are still committed."""

    class _RejectingSink(SqliteSink):
        def insert_row(self, spec: TableSpec, values: Sequence[str]) -> None:
            if values[0] == "bad":
                values = [*values, "surplus"]  # wrong binding count
            super().insert_row(spec, values)

    db_path = tmp_path / "out.db"
    spec = TableSpec(name="t", columns=("v",))
    stats = materialize_table(_RejectingSink(db_path), spec, [{"v": "ok1"}, {"v": "bad"}, {"v": "ok2"}])

    assert (stats.rows_inserted, stats.rows_failed) == (2, 1)
    assert _fetch(db_path, "SELECT v FROM t ORDER BY rowid") == [("ok1",), ("ok2",)]


def test_sqlite_sink_close_is_idempotent(tmp_path: Path) -> None:
    sink = SqliteSink(tmp_path / "out.db")
    sink.close()
    sink.close()

    with pytest.raises(sqlite3.ProgrammingError):
        sink.drop_table(_SPEC)


def test_sqlite_sink_insert_after_close_raises_programming_error(tmp_path: Path) -> None:
    sink = SqliteSink(tmp_path / "out.db")
    sink.create_table(_SPEC)
    sink.close()

    with pytest.raises(sqlite3.ProgrammingError, match="sink already closed"):
        sink.insert_row(_SPEC, ["Alice", "30"])


def test_sqlite_sink_reopens_insert_cursor_after_finalize(tmp_path: Path) -> None:
    db_path = tmp_path / "out.db"
    sink = SqliteSink(db_path)
    sink.create_table(_SPEC)
    sink.insert_row(_SPEC, ["Alice", "30"])
    sink.finalize()

    sink.insert_row(_SPEC, ["Bob", "25"])
    sink.finalize()
    sink.close()

    assert _fetch(db_path, "SELECT name, age FROM people ORDER BY rowid") == [("Alice", "30"), ("Bob", "25")]


@pytest.mark.parametrize("name", ["people; DROP TABLE x", "people\n", "\npeople", ""])
def test_table_spec_rejects_unsafe_name(name: str) -> None:
    with pytest.raises(ValueError, match="invalid table name"):
        TableSpec(name=name, columns=("a",))


def test_table_spec_sql_quotes_identifiers() -> None:
    spec = TableSpec(name="people", columns=("name", "age"))

    assert spec.drop_sql() == 'DROP TABLE IF EXISTS "people"'
    assert spec.create_sql() == 'CREATE TABLE "people" ("name" TEXT, "age" TEXT)'
    assert spec.insert_sql() == 'INSERT INTO "people" ("name", "age") VALUES (?, ?)'
