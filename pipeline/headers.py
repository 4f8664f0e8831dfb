"""Header resolution: turn the first CSV record into the run's column names.

The resolved list is the fixed schema for the rest of the run. Sanitized
names are neither deduplicated nor rejected when empty; a collision surfaces
later as a CREATE TABLE failure.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

_NON_IDENTIFIER_RE = re.compile(r"[^A-Za-z0-9_]")


def sanitize_column_name(raw: str) -> str:
    """Trim, then replace every character outside ``[A-Za-z0-9_]`` with ``_``."""
    return _NON_IDENTIFIER_RE.sub("_", str(raw).strip())


def placeholder_columns(count: int) -> list[str]:
    """``column_1 .. column_<count>``."""
    return [f"column_{i}" for i in range(1, count + 1)]


def resolve_headers(first_record: Sequence[str], has_header: bool) -> list[str]:
    """Column names for a run, one per field of *first_record*.

    With ``has_header`` the record holds labels and is consumed; otherwise
    placeholders are generated and the caller must keep the record as data.
    """
    if has_header:
        return [sanitize_column_name(cell) for cell in first_record]
    return placeholder_columns(len(first_record))
