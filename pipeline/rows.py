"""Row collection: stream CSV records into an in-memory list of rows.

Records are read strictly in order. The first non-blank record resolves the
header (see :mod:`pipeline.headers`); every later record becomes a row keyed
by the resolved column names. Nothing touches the database here: the whole
source is buffered before materialization starts.
"""

from __future__ import annotations

import csv
import logging
import sys
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from contracts.conversion import MalformedSourceError
from pipeline.headers import resolve_headers

logger = logging.getLogger(__name__)

Row = dict[str, str]

# Cells have no size cap (the csv module default is 131072 chars).
# field_size_limit takes a C long, which is 32-bit on some platforms.
FIELD_SIZE_LIMIT = min(sys.maxsize, 2**31 - 1)


@dataclass
class CollectedSource:
    """Resolved columns plus every buffered row, in source order."""

    columns: list[str]
    rows: list[Row] = field(default_factory=list)
    truncated_rows: int = 0
    short_rows: int = 0


def build_row(columns: Sequence[str], values: Sequence[str]) -> Row:
    """Key *values* positionally by *columns*; surplus values are dropped."""
    return {name: value for name, value in zip(columns, values)}


def collect_rows(
    records: Iterable[Sequence[str]],
    *,
    has_header: bool,
    strict_field_count: bool = False,
) -> Optional[CollectedSource]:
    """Resolve columns from the first record and buffer the rest.

    Returns ``None`` when *records* yields nothing at all (empty source).
    Blank records (zero fields) are skipped.
    """
    collected: Optional[CollectedSource] = None
    for index, record in enumerate(records, start=1):
        if not record:
            continue

        if collected is None:
            collected = CollectedSource(columns=resolve_headers(record, has_header))
            if has_header:
                continue

        width = len(collected.columns)
        if len(record) != width:
            if strict_field_count:
                raise MalformedSourceError(
                    f"record {index} has {len(record)} fields, expected {width}"
                )
            if len(record) > width:
                collected.truncated_rows += 1
                logger.warning(
                    "Record %s has %s fields, expected %s; extra fields dropped",
                    index,
                    len(record),
                    width,
                )
            else:
                collected.short_rows += 1

        collected.rows.append(build_row(collected.columns, record))
    return collected


def _iter_records(reader: Iterator[list[str]], path: Path) -> Iterator[list[str]]:
    """Yield records, turning tokenizer and decoding failures into MalformedSourceError."""
    while True:
        try:
            record = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            line = getattr(reader, "line_num", "?")
            raise MalformedSourceError(f"Error reading CSV '{path}' at line {line}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise MalformedSourceError(f"Error reading CSV '{path}': invalid text encoding ({exc})") from exc
        yield record


def read_source(
    path: str | Path,
    *,
    has_header: bool,
    encoding: str = "utf-8-sig",
    delimiter: str = ",",
    strict_field_count: bool = False,
) -> Optional[CollectedSource]:
    """Read the whole CSV file at *path* into memory.

    ``OSError`` (missing/unreadable file) propagates unchanged; the caller
    validates paths before reaching this point.
    """
    src = Path(path)
    csv.field_size_limit(FIELD_SIZE_LIMIT)
    with src.open("r", encoding=encoding, newline="") as fh:
        reader = csv.reader(fh, delimiter=delimiter, strict=True)
        collected = collect_rows(
            _iter_records(reader, src),
            has_header=has_header,
            strict_field_count=strict_field_count,
        )

    if collected is None:
        logger.info("CSV source %s has no records", src)
    else:
        logger.debug(
            "Read %s rows with %s columns from %s", len(collected.rows), len(collected.columns), src
        )
    return collected
