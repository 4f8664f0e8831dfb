"""Boundary types for one CSV → SQLite conversion run.

- ``ConversionRequest``: the validated tuple handed over by the CLI/prompt layer
- ``TableSpec``: table name plus ordered TEXT columns
- ``ConversionOutcome``: the single result value a run produces
- ``Ok`` / ``Cancelled``: tagged prompt results (cancellation never reaches the core)
- the ``ConversionError`` hierarchy for structural failures
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Generic, TypeVar, Union

TABLE_NAME_RE = re.compile(r"[A-Za-z0-9_]+")

T = TypeVar("T")


class ConversionError(RuntimeError):
    """Base class for structural failures that end a conversion run."""


class MalformedSourceError(ConversionError):
    """The CSV source could not be tokenized or decoded."""


class SinkStructureError(ConversionError):
    """Dropping or creating the target table failed; no row was inserted."""


class SinkFinalizeError(ConversionError):
    """Committing or closing the sink failed after all rows were attempted."""


@dataclass(frozen=True)
class ConversionRequest:
    """Pre-validated input of one run."""

    source_path: Path
    sink_path: Path
    table_name: str
    has_header: bool = True

    @classmethod
    def build(
        cls,
        source_path: str | Path,
        sink_path: str | Path,
        table_name: str,
        has_header: bool = True,
    ) -> ConversionRequest:
        return cls(
            source_path=Path(source_path),
            sink_path=Path(sink_path),
            table_name=str(table_name),
            has_header=bool(has_header),
        )


@dataclass(frozen=True)
class TableSpec:
    """Target table: name plus ordered column names, every column declared TEXT."""

    name: str
    columns: tuple[str, ...]

    def __post_init__(self) -> None:
        if not TABLE_NAME_RE.fullmatch(self.name):
            raise ValueError(f"invalid table name: {self.name!r}")

    @staticmethod
    def quote(identifier: str) -> str:
        return '"' + identifier.replace('"', '""') + '"'

    def drop_sql(self) -> str:
        return f"DROP TABLE IF EXISTS {self.quote(self.name)}"

    def create_sql(self) -> str:
        columns = ", ".join(f"{self.quote(c)} TEXT" for c in self.columns)
        return f"CREATE TABLE {self.quote(self.name)} ({columns})"

    def insert_sql(self) -> str:
        columns = ", ".join(self.quote(c) for c in self.columns)
        placeholders = ", ".join("?" for _ in self.columns)
        return f"INSERT INTO {self.quote(self.name)} ({columns}) VALUES ({placeholders})"


class OutcomeKind(str, enum.Enum):
    IMPORTED = "imported"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionOutcome:
    """Normalized result of one run; the CLI turns it into exactly one terminal message."""

    kind: OutcomeKind
    request: ConversionRequest
    rows_imported: int = 0
    rows_failed: int = 0
    columns: tuple[str, ...] = ()
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is not OutcomeKind.FAILED

    @property
    def summary(self) -> str:
        req = self.request
        if self.kind is OutcomeKind.EMPTY:
            return "CSV file is empty. No data imported."
        if self.kind is OutcomeKind.FAILED:
            return f"Conversion failed: {self.error}"
        text = (
            f"Data from '{req.source_path}' imported into table '{req.table_name}' "
            f"in '{req.sink_path}'. Rows imported: {self.rows_imported}."
        )
        if self.rows_failed:
            text += f" Rows failed: {self.rows_failed}."
        return text


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A prompt answered with a value."""

    value: T


@dataclass(frozen=True)
class Cancelled:
    """A prompt aborted by the user (Ctrl-C or end of input)."""


PromptResult = Union[Ok[T], Cancelled]
