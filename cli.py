"""
csv2sqlite CLI (flat-layout friendly).

Usage
-----
csv2sqlite data/gaming.csv game_stats.db players
csv2sqlite data.csv mydata.db mytable --no-header
csv2sqlite                      # interactive mode
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from apps.cli.interactive import InputFn, OutputFn, Prompter, collect_request
from apps.cli.validation import validate_arguments
from contracts.conversion import Cancelled, ConversionOutcome, ConversionRequest, OutcomeKind
from infra.config import ConverterConfig, get_settings
from infra.logging_config import setup_logging
from services.converter import CsvConverter
from version import ENGINE_NAME, ENGINE_VERSION

logger = logging.getLogger(__name__)

_EPILOG = """\
Examples:
  csv2sqlite data/gaming.csv game_stats.db players
  csv2sqlite data.csv mydata.db mytable --no-header
  csv2sqlite  # Run in interactive mode
"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="csv2sqlite",
        description="CSV to SQLite Converter",
        usage="csv2sqlite [options]\n       csv2sqlite <csv-file> <db-file> <table-name> [--no-header]",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("csv_file", nargs="?", metavar="csv-file", help="Path to the CSV file to convert")
    p.add_argument(
        "db_file",
        nargs="?",
        metavar="db-file",
        help="Name of the SQLite database file to create (should end with .db)",
    )
    p.add_argument(
        "table_name", nargs="?", metavar="table-name", help="Name of the table to create in the database"
    )
    p.add_argument(
        "--no-header",
        dest="has_header",
        action="store_false",
        help="Treat the first row as data (not column headers)",
    )
    p.add_argument("--log-level", default=None, help="DEBUG|INFO|WARNING|ERROR (or CSV2SQLITE_LOG_LEVEL).")
    p.add_argument(
        "--json-logs",
        action="store_true",
        default=None,
        help="Emit JSON log lines on stderr (or CSV2SQLITE_LOG_JSON=1).",
    )
    p.add_argument("--version", action="version", version=f"{ENGINE_NAME} {ENGINE_VERSION}")
    return p


def report_outcome(outcome: ConversionOutcome, *, output_fn: OutputFn = print) -> int:
    """Print the single terminal message for a run and return the exit code."""
    if outcome.kind is OutcomeKind.EMPTY:
        output_fn("Conversion complete (no data imported due to empty CSV).")
        return 0
    if outcome.kind is OutcomeKind.FAILED:
        print(outcome.summary, file=sys.stderr)
        return 1
    output_fn("CSV converted successfully!")
    output_fn(outcome.summary)
    return 0


def run_conversion(
    request: ConversionRequest,
    *,
    converter: CsvConverter,
    output_fn: OutputFn = print,
) -> int:
    output_fn("Processing CSV and creating database...")
    outcome = asyncio.run(converter.convert(request))
    return report_outcome(outcome, output_fn=output_fn)


def run_interactive(
    *,
    converter: CsvConverter,
    config: ConverterConfig,
    input_fn: InputFn = input,
    output_fn: OutputFn = print,
) -> int:
    output_fn("Let's convert your CSV to a SQLite database!")
    try:
        result = collect_request(Prompter(input_fn=input_fn, output_fn=output_fn), config=config)
        if isinstance(result, Cancelled):
            output_fn("Operation cancelled.")
            return 0
        return run_conversion(result.value, converter=converter, output_fn=output_fn)
    except Exception as exc:  # last-resort boundary for the prompt session
        logger.debug("Interactive session failed", exc_info=True)
        output_fn(f"An unexpected error occurred: {exc}")
        return 1


def main(
    argv: Optional[List[str]] = None,
    *,
    converter: Optional[CsvConverter] = None,
    input_fn: InputFn = input,
    output_fn: OutputFn = print,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level=args.log_level, json_logs=args.json_logs)
    config = get_settings().converter
    converter = converter or CsvConverter(config=config)

    positional = [v for v in (args.csv_file, args.db_file, args.table_name) if v is not None]
    # --no-header is a conversion argument; the logging flags are not.
    if not positional and args.has_header:
        return run_interactive(converter=converter, config=config, input_fn=input_fn, output_fn=output_fn)

    if len(positional) < 3:
        print("Error: Missing required arguments", file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1

    error = validate_arguments(
        args.csv_file,
        args.db_file,
        args.table_name,
        csv_suffixes=config.csv_suffixes,
        db_suffixes=config.db_suffixes,
    )
    if error:
        print(error, file=sys.stderr)
        return 1

    output_fn("Converting CSV to SQLite database...")
    request = ConversionRequest.build(args.csv_file, args.db_file, args.table_name, args.has_header)
    return run_conversion(request, converter=converter, output_fn=output_fn)


if __name__ == "__main__":
    raise SystemExit(main())
