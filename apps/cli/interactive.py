"""Interactive prompt flow.

Every prompt returns a tagged result: ``Ok(value)`` or ``Cancelled()`` when the
user hits Ctrl-C or closes stdin. Cancellation stops at this layer; the
converter only ever sees a complete :class:`ConversionRequest`.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional

from apps.cli.validation import validate_csv_path, validate_db_path, validate_table_name
from contracts.conversion import Cancelled, ConversionRequest, Ok, PromptResult
from infra.config import ConverterConfig

InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]
Validator = Callable[[str], Optional[str]]

_YES = {"y", "yes"}
_NO = {"n", "no"}


class Prompter:
    """Line-based text and confirm prompts over injectable input/output functions."""

    def __init__(self, *, input_fn: InputFn = input, output_fn: OutputFn = print) -> None:
        self._input = input_fn
        self._output = output_fn

    def _ask(self, prompt: str) -> Optional[str]:
        try:
            return self._input(prompt)
        except (EOFError, KeyboardInterrupt):
            return None

    def text(
        self,
        message: str,
        *,
        placeholder: str = "",
        validate: Validator | None = None,
    ) -> PromptResult[str]:
        prompt = f"{message} ({placeholder}) " if placeholder else f"{message} "
        while True:
            raw = self._ask(prompt)
            if raw is None:
                return Cancelled()
            value = raw.strip()
            error = validate(value) if validate else None
            if error:
                self._output(error)
                continue
            return Ok(value)

    def confirm(self, message: str, *, initial_value: bool = True) -> PromptResult[bool]:
        hint = "[Y/n]" if initial_value else "[y/N]"
        while True:
            raw = self._ask(f"{message} {hint} ")
            if raw is None:
                return Cancelled()
            answer = raw.strip().lower()
            if not answer:
                return Ok(initial_value)
            if answer in _YES:
                return Ok(True)
            if answer in _NO:
                return Ok(False)
            self._output("Please answer y or n.")


def collect_request(
    prompter: Prompter,
    *,
    config: ConverterConfig | None = None,
) -> PromptResult[ConversionRequest]:
    """Ask for CSV path, database file, table name and header flag, in that order."""
    cfg = config or ConverterConfig()

    csv_path = prompter.text(
        "Enter the path to your CSV file:",
        placeholder="./data.csv",
        validate=lambda v: validate_csv_path(v, suffixes=cfg.csv_suffixes),
    )
    if isinstance(csv_path, Cancelled):
        return csv_path

    db_path = prompter.text(
        "Enter the desired SQLite database file name (e.g., mydatabase.db):",
        placeholder="my_database.db",
        validate=lambda v: validate_db_path(v, suffixes=cfg.db_suffixes),
    )
    if isinstance(db_path, Cancelled):
        return db_path

    table_name = prompter.text(
        "Enter the name for the table in the database:",
        placeholder="my_table",
        validate=validate_table_name,
    )
    if isinstance(table_name, Cancelled):
        return table_name

    has_header = prompter.confirm(
        "Does your CSV file have a header row (first row contains column names)?",
        initial_value=True,
    )
    if isinstance(has_header, Cancelled):
        return has_header

    return Ok(
        ConversionRequest.build(
            source_path=csv_path.value,
            sink_path=db_path.value,
            table_name=table_name.value,
            has_header=has_header.value,
        )
    )
