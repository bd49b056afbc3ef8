"""
Configuration schema (``inventory_config.schema``).

Responsibility
--------------
Frozen dataclass for the inventory engine settings and the error raised
when a configuration file does not validate.

Invariants enforced
-------------------
* ``csv_separator`` is ``;`` or ``,`` (the decimal separator is derived
  from it, so any other character would make quantities ambiguous).
* ``booking_note_template`` formats with ``project_name`` and
  ``project_number`` only.
* Pool sizes are non-negative integers; the busy timeout is positive.
"""

from __future__ import annotations

from dataclasses import dataclass

CSV_SEPARATORS = (";", ",")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(ValueError):
    """A configuration value is missing, of the wrong type or out of range."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Invalid configuration for {key!r}: {message}")


@dataclass(frozen=True)
class InventorySettings:
    """Validated runtime settings; the sole configuration artifact."""

    database_url: str
    csv_separator: str = ";"
    import_date_format: str = "%d-%m-%Y"
    default_import_note: str = "Geïmporteerd via CSV"
    booking_note_template: str = "Afgeboekt naar project {project_name}"
    log_level: str = "INFO"
    pool_size: int = 20
    max_overflow: int = 10
    sqlite_busy_timeout: float = 30.0
    checksum: str = ""
    source: str = "defaults"

    @property
    def decimal_separator(self) -> str:
        return "," if self.csv_separator == ";" else "."
