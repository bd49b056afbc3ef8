"""
inventory_config -- single public entrypoint for engine configuration.

Responsibility:
    ``get_active_config()`` is the only way to obtain settings at runtime.
    It reads the packaged ``defaults.yaml``, overlays an optional user file
    (the ``path`` argument, else the file named by ``INVENTORY_CONFIG``)
    and returns a validated, frozen ``InventorySettings``.

Architecture position:
    Configuration.  Sits beside ``inventory_kernel``; the kernel never
    imports from ``inventory_config``.  InventoryEngine and the CLI pass
    the settings down as plain arguments.

Failure modes:
    - ``FileNotFoundError`` -- the override file does not exist.
    - ``yaml.YAMLError`` -- the override file is not valid YAML.
    - ``ConfigError`` -- unknown key or invalid value.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from inventory_config.loader import load_yaml_file, parse_settings
from inventory_config.schema import ConfigError, InventorySettings

__all__ = ["ConfigError", "InventorySettings", "get_active_config"]

_logger = logging.getLogger("inventory_kernel.config")

DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"

CONFIG_ENV_VAR = "INVENTORY_CONFIG"


def get_active_config(path: Path | str | None = None) -> InventorySettings:
    """
    Load defaults, overlay the user file, validate.

    Emits an ``INVENTORY_CONFIG_TRACE`` log entry naming the source file
    and the settings checksum.
    """
    data = load_yaml_file(DEFAULTS_FILE)
    source = "defaults"
    override = path if path is not None else os.environ.get(CONFIG_ENV_VAR)
    if override:
        data.update(load_yaml_file(Path(override)))
        source = str(override)

    settings = parse_settings(data, source=source)
    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_source": settings.source,
            "checksum": settings.checksum,
            "csv_separator": settings.csv_separator,
        },
    )
    return settings
