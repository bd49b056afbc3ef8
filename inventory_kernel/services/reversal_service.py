"""
ReversalService -- "delete" journal rows by writing compensating entries.

Responsibility:
    Validates that each target row can be reversed, then writes one
    compensating row per target (opposite type, opposite sign, same product,
    location and project, ``reversal_of_id`` set) through StockJournal, so
    the balance is restored in the same transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Called by InventoryEngine.

Invariants enforced:
    - Journal rows are never mutated or deleted.  Reversal state is derived
      from the reversal_of_id linkage alone.
    - A row is reversed at most once (unique constraint on reversal_of_id;
      targets are locked with SELECT ... FOR UPDATE).
    - Non-negativity wins over deletion: reversing an ``in`` whose stock has
      since been consumed fails with InsufficientStockError.

Failure modes:
    - TransactionNotFoundError: an id does not exist.
    - TransactionAlreadyReversedError: the row was already reversed, or is
      itself a compensating row.
    - InsufficientStockError: the compensating ``out`` cannot be covered.
    - ValidationError: no ids given.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import ReversalBatch, TransactionEntry
from inventory_kernel.exceptions import (
    TransactionAlreadyReversedError,
    TransactionNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.stock import StockTransaction
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.stock_journal import StockJournal

logger = get_logger("services.reversal")


class ReversalService(BaseService):
    """
    Deletion as reversal.

    Contract:
        ``delete(ids, actor_id, reason)`` writes all compensating rows as a
        single batch or raises.  It never commits.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        journal: StockJournal | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._journal = journal or StockJournal(session, clock=self._clock)

    def _load_and_validate(self, ids: list[UUID]) -> list[StockTransaction]:
        rows = {
            row.id: row
            for row in self.session.execute(
                select(StockTransaction)
                .where(StockTransaction.id.in_(ids))
                .with_for_update(of=StockTransaction)
            ).unique().scalars()
        }
        for transaction_id in ids:
            if transaction_id not in rows:
                raise TransactionNotFoundError(str(transaction_id))

        already = set(
            self.session.execute(
                select(StockTransaction.reversal_of_id).where(
                    StockTransaction.reversal_of_id.in_(ids)
                )
            ).scalars()
        )
        originals = []
        for transaction_id in ids:
            row = rows[transaction_id]
            if row.reversal_of_id is not None:
                raise TransactionAlreadyReversedError(
                    str(transaction_id), reason="entry is itself a reversal"
                )
            if transaction_id in already:
                raise TransactionAlreadyReversedError(str(transaction_id))
            originals.append(row)
        return originals

    def delete(
        self,
        transaction_ids: Iterable[UUID],
        actor_id: UUID,
        reason: str = "",
    ) -> ReversalBatch:
        ids = list(dict.fromkeys(transaction_ids))
        if not ids:
            raise ValidationError("Nothing to delete", field="transaction_ids")

        originals = self._load_and_validate(ids)
        notes = f"Verwijderd: {reason}" if reason else "Verwijderd"
        entries = [
            TransactionEntry(
                product_id=row.product_id,
                location_id=row.location_id,
                transaction_type=row.type.opposite,
                quantity=-row.quantity,
                user_id=actor_id,
                project_id=row.project_id,
                notes=notes,
                reversal_of_id=row.id,
            )
            for row in originals
        ]

        try:
            batch = self._journal.write_batch(entries)
        except IntegrityError as exc:
            # A concurrent delete won the unique reversal_of_id slot
            raise TransactionAlreadyReversedError(
                ", ".join(str(i) for i in ids), reason="reversed concurrently"
            ) from exc

        logger.info(
            "transactions_reversed",
            extra={
                "batch_id": str(batch.batch_id),
                "reversed_count": len(ids),
                "actor_id": str(actor_id),
                "reason": reason,
            },
        )
        return ReversalBatch(
            batch_id=batch.batch_id,
            reversed_ids=tuple(ids),
            compensating_ids=batch.transaction_ids,
            reason=reason,
        )
