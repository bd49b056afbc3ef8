#!/usr/bin/env python3
"""
Operator CLI for the inventory engine (same as the ``inventory`` console script).

Usage:
    python3 scripts/inventory_cli.py --config settings.yaml import-bookings bookings.csv --actor-id <uuid>
    python3 scripts/inventory_cli.py export export.csv --from 2025-10-01 --to 2025-10-31
"""

from __future__ import annotations

import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from inventory_services.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
