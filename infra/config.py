"""Centralized application configuration with schema validation.

Settings are read from a local ``.env`` file first, then from the process
environment (process env wins). Both flat names (for example
``CSV2SQLITE_LOG_LEVEL``) and nested names (for example ``LOGGING__LEVEL``)
are accepted.
"""

from __future__ import annotations

import codecs
import os
from collections.abc import Mapping
from pathlib import Path
from threading import Lock

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_flag(value: object, *, default: bool) -> bool:
    if value is None:
        return default
    text = str(value).strip().lower()
    if text == "":
        return default
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_suffixes(value: object, *, field_name: str) -> tuple[str, ...]:
    """Accept a list or comma-separated string and normalize to lowercase dotted suffixes."""
    items: list[str]
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, (list, tuple)):
        items = [str(part).strip() for part in value if str(part).strip()]
    else:
        raise TypeError(f"{field_name} must be a list[str] or comma-separated string")

    if not items:
        raise ValueError(f"{field_name} must contain at least one suffix")

    ordered: list[str] = []
    for item in items:
        suffix = item.lower()
        if not suffix.startswith("."):
            suffix = "." + suffix
        if suffix not in ordered:
            ordered.append(suffix)
    return tuple(ordered)


class LoggingSettings(BaseModel):
    """Repository-wide logging settings."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    override_root_handlers: bool = Field(default=False)

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: object) -> str:
        text = str(value or "").strip().upper()
        if text in _LOG_LEVELS:
            return text
        return "INFO"

    @field_validator("json_logs", "override_root_handlers", mode="before")
    @classmethod
    def _normalize_flags(cls, value: object) -> bool:
        return _parse_flag(value, default=False)


class ConverterConfig(BaseModel):
    """CSV reading and file naming rules used by the converter and the CLI."""

    model_config = ConfigDict(frozen=True)

    encoding: str = Field(default="utf-8-sig", min_length=1)
    delimiter: str = Field(default=",", min_length=1, max_length=1)
    strict_field_count: bool = Field(default=False)
    csv_suffixes: tuple[str, ...] = Field(default=(".csv",))
    db_suffixes: tuple[str, ...] = Field(default=(".db",))

    @field_validator("encoding", mode="before")
    @classmethod
    def _normalize_encoding(cls, value: object) -> str:
        text = str(value or "").strip().lower()
        if text:
            try:
                codecs.lookup(text)
            except LookupError as exc:
                raise ValueError(f"unknown encoding: {text!r}") from exc
        return text

    @field_validator("strict_field_count", mode="before")
    @classmethod
    def _normalize_strict(cls, value: object) -> bool:
        return _parse_flag(value, default=False)

    @field_validator("csv_suffixes", mode="before")
    @classmethod
    def _normalize_csv_suffixes(cls, value: object) -> tuple[str, ...]:
        return _parse_suffixes(value, field_name="converter.csv_suffixes")

    @field_validator("db_suffixes", mode="before")
    @classmethod
    def _normalize_db_suffixes(cls, value: object) -> tuple[str, ...]:
        return _parse_suffixes(value, field_name="converter.db_suffixes")


# Environment names per settings field, most specific first. A value is taken
# from the first name that is set to something non-blank.
_ENV_KEYS: dict[str, dict[str, tuple[str, ...]]] = {
    "logging": {
        "level": ("LOGGING__LEVEL", "CSV2SQLITE_LOG_LEVEL"),
        "json_logs": ("LOGGING__JSON_LOGS", "CSV2SQLITE_LOG_JSON"),
        "override_root_handlers": ("LOGGING__OVERRIDE_ROOT_HANDLERS", "CSV2SQLITE_LOG_OVERRIDE"),
    },
    "converter": {
        "encoding": ("CONVERTER__ENCODING", "CSV2SQLITE_ENCODING"),
        "delimiter": ("CONVERTER__DELIMITER", "CSV2SQLITE_DELIMITER"),
        "strict_field_count": ("CONVERTER__STRICT_FIELD_COUNT", "CSV2SQLITE_STRICT_FIELD_COUNT"),
        "csv_suffixes": ("CONVERTER__CSV_SUFFIXES", "CSV2SQLITE_CSV_SUFFIXES"),
        "db_suffixes": ("CONVERTER__DB_SUFFIXES", "CSV2SQLITE_DB_SUFFIXES"),
    },
}

# Whitespace is meaningful for these (a tab delimiter), so values are not stripped.
_UNSTRIPPED = {("converter", "delimiter")}


class Settings(BaseModel):
    """Top-level settings model."""

    model_config = ConfigDict(frozen=True)

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    converter: ConverterConfig = Field(default_factory=ConverterConfig)

    @classmethod
    def from_env(
        cls,
        *,
        env: Mapping[str, str] | None = None,
        env_file: str = ".env",
    ) -> Settings:
        """Build settings from `.env`, then the process env (which wins)."""
        source = {**read_env_file(Path(env_file)), **(os.environ if env is None else env)}
        return cls.model_validate(_payload_from_env(source))


def read_env_file(path: Path) -> dict[str, str]:
    """Parse ``KEY=value`` lines; blank lines and ``#`` comments are ignored.

    One pair of matching single or double quotes around a value is removed.
    """
    if not path.is_file():
        return {}

    parsed: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        key, sep, value = line.strip().partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue
        value = value.strip()
        if len(value) >= 2 and value[0] in "'\"" and value[-1] == value[0]:
            value = value[1:-1]
        parsed[key] = value
    return parsed


def _lookup(env: Mapping[str, str], keys: tuple[str, ...], *, strip: bool) -> str | None:
    for key in keys:
        raw = env.get(key)
        if raw is None:
            continue
        value = str(raw).strip() if strip else str(raw)
        if value:
            return value
    return None


def _payload_from_env(env: Mapping[str, str]) -> dict[str, dict[str, str]]:
    payload: dict[str, dict[str, str]] = {}
    for section, fields in _ENV_KEYS.items():
        values: dict[str, str] = {}
        for name, keys in fields.items():
            found = _lookup(env, keys, strip=(section, name) not in _UNSTRIPPED)
            if found is not None:
                values[name] = found
        payload[section] = values
    return payload


_cache_lock = Lock()
_cached: Settings | None = None


def get_settings(*, reload: bool = False) -> Settings:
    """Process-wide settings; ``reload=True`` re-reads `.env` and the environment."""
    global _cached
    with _cache_lock:
        if reload or _cached is None:
            _cached = Settings.from_env()
        return _cached


def clear_settings_cache() -> None:
    global _cached
    with _cache_lock:
        _cached = None


__all__ = [
    "ConverterConfig",
    "LoggingSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "read_env_file",
    "ValidationError",
]
