"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads YAML files and turns the merged mapping into a validated
``InventorySettings``.  Runtime callers go through
``inventory_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key, wrong type or bad value  -> ``ConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import CSV_SEPARATORS, LOG_LEVELS, ConfigError, InventorySettings

_DERIVED = ("checksum", "source")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigError: if the top level is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 over the merged settings."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _int(data: dict[str, Any], key: str) -> int:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(key, f"expected a non-negative integer, got {value!r}")
    return value


def _text(data: dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(key, f"expected a non-empty string, got {value!r}")
    return value


def parse_settings(data: dict[str, Any], source: str = "defaults") -> InventorySettings:
    """Validate a merged mapping and build InventorySettings."""
    known = {f.name for f in fields(InventorySettings)} - set(_DERIVED)
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(unknown[0], "unknown key")
    if "database_url" not in data:
        raise ConfigError("database_url", "required")

    separator = data.get("csv_separator", ";")
    if separator not in CSV_SEPARATORS:
        raise ConfigError("csv_separator", f"must be one of {CSV_SEPARATORS}, got {separator!r}")

    date_format = _text(data, "import_date_format") if "import_date_format" in data else "%d-%m-%Y"
    try:
        date(2025, 10, 14).strftime(date_format)
    except ValueError as exc:
        raise ConfigError("import_date_format", str(exc)) from exc

    template = data.get("booking_note_template", "Afgeboekt naar project {project_name}")
    try:
        template.format(project_name="", project_number="")
    except (KeyError, IndexError, ValueError, AttributeError) as exc:
        raise ConfigError("booking_note_template", f"cannot format: {exc}") from exc

    log_level = str(data.get("log_level", "INFO")).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError("log_level", f"must be one of {LOG_LEVELS}")

    timeout = data.get("sqlite_busy_timeout", 30.0)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError("sqlite_busy_timeout", f"expected a positive number, got {timeout!r}")

    return InventorySettings(
        database_url=_text(data, "database_url"),
        csv_separator=separator,
        import_date_format=date_format,
        default_import_note=str(data.get("default_import_note", "Geïmporteerd via CSV")),
        booking_note_template=template,
        log_level=log_level,
        pool_size=_int(data, "pool_size") if "pool_size" in data else 20,
        max_overflow=_int(data, "max_overflow") if "max_overflow" in data else 10,
        sqlite_busy_timeout=float(timeout),
        checksum=compute_checksum(data),
        source=source,
    )
