"""
Module: inventory_kernel.db.text
Responsibility: Case-insensitive text matching for catalog and project
    lookups (location names, project names and numbers).
Architecture position: Kernel > DB.  Used by services/; MUST NOT import from
    models/, services/ or outer layers.

Invariants enforced:
    - Both sides of a comparison go through SQL ``lower()``.  PostgreSQL
      folds the full Unicode range; on SQLite the engine replaces the
      built-in ASCII-only ``lower()`` with Python's ``str.lower`` on every
      connection, so "ÉBÈNE" finds "Ébène depot" on both backends.
    - ``%``, ``_`` and ``\\`` in a search fragment match literally.
"""

from sqlalchemy import func
from sqlalchemy.sql.elements import ColumnElement

LIKE_ESCAPE = "\\"


def like_pattern(fragment: str) -> str:
    """``"50%_x"`` -> ``"%50\\%\\_x%"``, lower-cased."""
    escaped = (
        fragment.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped.lower()}%"


def contains_ci(column, fragment: str) -> ColumnElement[bool]:
    return func.lower(column).like(like_pattern(fragment), escape=LIKE_ESCAPE)


def equals_ci(column, value: str) -> ColumnElement[bool]:
    return func.lower(column) == value.lower()


def sqlite_lower(value):
    """Replacement for SQLite's ``lower()``; NULL and numbers pass through."""
    return value.lower() if isinstance(value, str) else value
