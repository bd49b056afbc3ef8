"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write-side service in the kernel.  Services receive a SQLAlchemy
    ``Session`` and use ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back themselves.  InventoryEngine (or a test)
    owns commit/rollback, so a multi-line booking is all-or-nothing.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Guarantees:
        The service never calls ``session.commit()`` or
        ``session.rollback()``.  Savepoints (``begin_nested``) are allowed
        for row-scoped recovery.
    """

    def __init__(self, session: Session):
        self.session = session
