"""
Structured JSON logging for the inventory kernel.

Every record is one JSON object per line.  Request-scoped fields (the
engine call's correlation id, the acting user, the project being booked
against, the journal batch and the import batch) are carried in
contextvars and merged into every record written while they are bound,
so a single booking or import can be followed through the log with one
filter.

Event names are snake_case messages (``booking_committed``,
``import_row_rejected``, ...); their data goes in ``extra``.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import dataclasses
import json
import logging
import sys
import threading
from contextvars import ContextVar, Token
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

# ---------------------------------------------------------------------------
# Context propagation
# ---------------------------------------------------------------------------

_CONTEXT_FIELDS = (
    "correlation_id",
    "actor_id",
    "project_id",
    "batch_id",
    "import_batch_id",
)

_context_vars: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"inventory_log_{name}", default=None) for name in _CONTEXT_FIELDS
}


class LogContext:
    """
    Request-scoped log fields, safe across threads and asyncio tasks.

    Only the names in ``_CONTEXT_FIELDS`` are carried; other keyword names
    are ignored.  Values are stored as strings.
    """

    @classmethod
    def set(cls, **fields: Any) -> None:
        """Set context fields. Only non-None values are updated."""
        for name, value in fields.items():
            var = _context_vars.get(name)
            if var is not None and value is not None:
                var.set(str(value))

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """Return all bound context fields as a dict."""
        return {
            name: value
            for name, var in _context_vars.items()
            if (value := var.get()) is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _context_vars.values():
            var.set(None)

    @classmethod
    def bind(cls, **fields: Any) -> "_BoundContext":
        """
        Context manager that binds fields on entry and restores the previous
        values on exit, e.g.::

            with LogContext.bind(import_batch_id=str(batch_id)):
                ...
        """
        return _BoundContext(fields)


class _BoundContext:
    def __init__(self, fields: dict[str, Any]):
        self._fields = fields
        self._tokens: list[tuple[ContextVar[str | None], Token]] = []

    def __enter__(self) -> type[LogContext]:
        for name, value in self._fields.items():
            var = _context_vars.get(name)
            if var is not None and value is not None:
                self._tokens.append((var, var.set(str(value))))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _to_json(obj: Any) -> Any:
    """Fallback for values json cannot encode (ids, dates, quantities, DTOs)."""
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    # Quantities keep their exact text; never go through float
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    # Shortfall and the other frozen DTOs carried on kernel exceptions
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    return str(obj)


class StructuredFormatter(logging.Formatter):
    """
    Formats each log record as a single JSON line.

    Key order: ts, level, logger, message, bound context, extra fields,
    then ``exc_*`` fields when the record carries an exception.  Kernel
    exceptions contribute their ``code`` and public attributes, so an
    InsufficientStockError logs every shortfall.
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(LogContext.get_all())
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STDLIB_KEYS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            code = getattr(exc, "code", None)
            if code is not None:
                payload["exc_code"] = code
            for name, value in vars(exc).items():
                if not name.startswith("_") and name != "code":
                    payload[f"exc_{name}"] = value
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Logger factory
# ---------------------------------------------------------------------------

_LOGGER_PREFIX = "inventory_kernel"


def get_logger(name: str) -> logging.Logger:
    """``get_logger("services.booking")`` -> ``inventory_kernel.services.booking``."""
    return logging.getLogger(f"{_LOGGER_PREFIX}.{name}")


# ---------------------------------------------------------------------------
# Initialization
# ---------------------------------------------------------------------------

_configured = False
_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach one JSON handler to the inventory_kernel logger (idempotent).

    ``level`` may be a logging constant or a level name in any case, as
    read from the ``log_level`` setting.  Records do not propagate to the
    root logger.
    """
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    if isinstance(level, str):
        level = level.upper()
    root_logger = logging.getLogger(_LOGGER_PREFIX)
    root_logger.setLevel(level)
    root_logger.propagate = False

    h = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    h.setFormatter(StructuredFormatter())
    root_logger.addHandler(h)


def reset_logging() -> None:
    """Drop handlers and forget the configuration. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    logger = logging.getLogger(_LOGGER_PREFIX)
    logger.handlers.clear()
    logger.setLevel(logging.WARNING)
    logger.propagate = True
