"""Input validation shared by argument mode and interactive mode.

Each ``validate_*`` function returns ``None`` when the value is acceptable,
otherwise the message to show under the prompt.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from contracts.conversion import TABLE_NAME_RE


def _suffix_list(suffixes: Sequence[str]) -> str:
    return " or ".join(suffixes)


def has_suffix(value: str, suffixes: Sequence[str]) -> bool:
    lowered = value.lower()
    return any(lowered.endswith(s) for s in suffixes)


def validate_csv_path(value: str, *, suffixes: Sequence[str] = (".csv",)) -> Optional[str]:
    if not value:
        return "CSV file path cannot be empty."
    if not Path(value).exists():
        return "File does not exist. Please check the path."
    if not has_suffix(value, suffixes):
        return f"File must be a {_suffix_list(suffixes)} file."
    return None


def validate_db_path(value: str, *, suffixes: Sequence[str] = (".db",)) -> Optional[str]:
    if not value:
        return "Database file name cannot be empty."
    if not has_suffix(value, suffixes):
        return f"Database file name should end with {_suffix_list(suffixes)}"
    return None


def validate_table_name(value: str) -> Optional[str]:
    if not value:
        return "Table name cannot be empty."
    if not TABLE_NAME_RE.fullmatch(value):
        return "Table name can only contain letters, numbers, and underscores."
    return None


def validate_arguments(
    csv_file: str,
    db_file: str,
    table_name: str,
    *,
    csv_suffixes: Sequence[str] = (".csv",),
    db_suffixes: Sequence[str] = (".db",),
) -> Optional[str]:
    """Check command-line arguments in order; return the first error line."""
    if not Path(csv_file).exists():
        return f"Error: CSV file '{csv_file}' does not exist"
    if not has_suffix(csv_file, csv_suffixes):
        return f"Error: File '{csv_file}' must be a {_suffix_list(csv_suffixes)} file"
    if not has_suffix(db_file, db_suffixes):
        return f"Error: Database file '{db_file}' should end with {_suffix_list(db_suffixes)}"
    if not TABLE_NAME_RE.fullmatch(table_name):
        return (
            f"Error: Table name '{table_name}' can only contain letters, numbers, and underscores"
        )
    return None
