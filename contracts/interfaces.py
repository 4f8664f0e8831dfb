"""
Protocol definitions for dependency injection.

The converter only talks to its database through :class:`DatabaseSink`, so
tests can swap in fakes that fail on a chosen statement.

Usage:
    from contracts.interfaces import DatabaseSink

    # In production, use pipeline.writer_sqlite.SqliteSink
    # In tests, use a small fake recording calls
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from contracts.conversion import TableSpec


@runtime_checkable
class DatabaseSink(Protocol):
    """Destination database exposing the materialization steps in order."""

    def drop_table(self, spec: TableSpec) -> None:
        """Drop the target table if it exists."""
        ...

    def create_table(self, spec: TableSpec) -> None:
        """Create the target table with one TEXT column per name."""
        ...

    def insert_row(self, spec: TableSpec, values: Sequence[str]) -> None:
        """Insert one record; values are in column order."""
        ...

    def finalize(self) -> None:
        """Commit pending inserts and release statement resources."""
        ...

    def close(self) -> None:
        """Close the underlying handle. Must be safe to call more than once."""
        ...
