"""
Clock -- injectable time source for the stock journal.

Responsibility:
    Services never call ``datetime.now()`` or ``date.today()`` directly.
    A journal batch takes its ``created_at`` from ``now()`` and, when the
    caller gives no booking date, its ``effective_date`` from
    ``business_date()``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """
    Contract:
        Every service that stamps journal rows receives a Clock through its
        constructor.

    Guarantees:
        - ``now()`` returns a timezone-aware UTC ``datetime``.
        - ``business_date()`` is the calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def business_date(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen time for tests.

    ``now()`` keeps returning the same instant until ``advance()`` moves it,
    so every row of a test booking carries a predictable timestamp.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._time = fixed_time or datetime(2025, 10, 14, 9, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._time

    def advance(self, seconds: int = 1) -> datetime:
        """Move the clock forward and return the new time."""
        self._time += timedelta(seconds=seconds)
        return self._time
