"""Database layer - engine, base classes, types, and immutability."""

from inventory_kernel.db.base import Base, TrackedBase, UUIDString
from inventory_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from inventory_kernel.db.types import (
    MAX_QUANTITY,
    QUANTITY_DECIMAL_PLACES,
    QuantityType,
    normalize_quantity,
)

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "QuantityType",
    "QUANTITY_DECIMAL_PLACES",
    "MAX_QUANTITY",
    "normalize_quantity",
]
