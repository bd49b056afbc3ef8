"""
SequenceService -- the journal's ``seq`` counter.

Responsibility:
    Hands out the ``seq`` number of every StockTransaction.  The journal
    orders rows that share a ``created_at`` by ``seq``, so the numbers must
    be unique and increase in commit order.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by StockJournal once per journal row.

Invariants enforced:
    - The counter row is read with ``SELECT ... FOR UPDATE``; a second
      writer waits for the first to commit before it can take a number.
      ``MAX(seq) + 1`` is never used.
    - A rolled back booking gives its numbers back with the transaction.

Failure modes:
    - IntegrityError when two writers create the counter row at the same
      time; the loser rolls back its savepoint and locks the winner's row.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Contract:
        ``next_value(name)`` returns the next number of the named counter
        inside the caller's transaction.

    Non-goals:
        - Does NOT commit; the number becomes durable with the booking.
    """

    STOCK_TRANSACTION = "stock_transaction"

    def __init__(self, session: Session):
        self._session = session

    def _lock(self, name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _create(self, name: str) -> SequenceCounter:
        """First use of a counter: insert it at 0 inside a savepoint."""
        savepoint = self._session.begin_nested()
        try:
            counter = SequenceCounter(name=name, current_value=0)
            self._session.add(counter)
            self._session.flush()
            savepoint.commit()
            return counter
        except IntegrityError:
            savepoint.rollback()
            logger.debug("sequence_counter_race_retry", extra={"sequence_name": name})
            counter = self._lock(name)
            if counter is None:
                raise
            return counter

    def next_value(self, name: str = STOCK_TRANSACTION) -> int:
        counter = self._lock(name) or self._create(name)
        counter.current_value += 1
        self._session.flush()
        return counter.current_value
