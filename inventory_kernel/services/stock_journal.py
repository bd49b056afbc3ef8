"""
StockJournal -- the only writer of stock journal rows and balances.

Responsibility:
    Appends immutable StockTransaction rows and applies their signed deltas
    to the materialized StockBalance in the same database transaction.
    Provides the supplemented movements built on append: receive (goods in),
    transfer (move between locations) and adjust_to_count (stock count).

Architecture position:
    Kernel > Services -- imperative shell.  Called by BookingService,
    ReversalService, the import services and InventoryEngine.

Invariants enforced:
    - Conservation: every balance change is explained by journal rows
      written in the same transaction; StockBalance.quantity always equals
      the journal sum for the pair.
    - Non-negativity: a decrease is one atomic conditional UPDATE
      (``quantity = quantity - :q WHERE quantity >= :q``).  There is no
      read-check-write window, so two concurrent writers cannot both pass
      a check against the same stale balance.
    - Atomic batches: all entries of one append share batch_id and
      created_at and either all land or (via the caller's rollback) none.
    - Pairs are touched in a fixed (product_id, location_id) order, so
      concurrent batches acquire row locks in the same order.

Failure modes:
    - InsufficientStockError: one or more pairs cannot cover their
      decrease.  Every failing pair is reported.  Balances of pairs that
      already passed were updated in this transaction; the caller MUST roll
      back (session_scope does).
    - ValidationError: empty batch, zero quantity, a sign that disagrees
      with the transaction type, or a net delta or resulting balance past
      MAX_QUANTITY (the caller MUST roll back, as above).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_kernel.db.types import MAX_QUANTITY, ZERO, normalize_quantity
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import Shortfall, TransactionBatch, TransactionEntry
from inventory_kernel.domain.quantities import validate_positive_quantity
from inventory_kernel.exceptions import InsufficientStockError, ValidationError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.stock import StockBalance, StockTransaction, TransactionType
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.sequence_service import SequenceService

logger = get_logger("services.stock_journal")

Pair = tuple[UUID, UUID]


def _pair_order(pair: Pair) -> tuple[str, str]:
    return (str(pair[0]), str(pair[1]))


def _plain(quantity: Decimal) -> str:
    """10.000000 -> "10", 2.500000 -> "2.5"."""
    return format(quantity.normalize(), "f")


class StockJournal(BaseService):
    """
    Append-only stock journal with a materialized balance per pair.

    Contract:
        ``append()`` writes a batch of entries and applies their net delta
        per (product, location) pair.  It never commits.

    Guarantees:
        - A pair is decremented only by the atomic conditional UPDATE.
        - A pair is incremented by an UPDATE, falling back to an INSERT in a
          savepoint; a concurrent INSERT of the same pair is caught and the
          UPDATE retried.
        - seq values come from SequenceService (locked counter row).

    Non-goals:
        - Does NOT resolve projects or write booking notes (BookingService).
        - Does NOT check for reversals (ReversalService).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        sequence_service: SequenceService | None = None,
        catalog: CatalogService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = sequence_service or SequenceService(session)
        self._catalog = catalog or CatalogService(session)

    # Balance primitives

    def _decrement(self, product_id: UUID, location_id: UUID, quantity: Decimal, now: datetime) -> bool:
        """Conditionally subtract ``quantity``; False when the balance is short."""
        result = self.session.execute(
            update(StockBalance)
            .where(StockBalance.product_id == product_id)
            .where(StockBalance.location_id == location_id)
            .where(StockBalance.quantity >= quantity)
            .values(quantity=StockBalance.quantity - quantity, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _increment(self, product_id: UUID, location_id: UUID, quantity: Decimal, now: datetime) -> None:
        """Add ``quantity``; the balance may not grow past MAX_QUANTITY."""
        stmt = (
            update(StockBalance)
            .where(StockBalance.product_id == product_id)
            .where(StockBalance.location_id == location_id)
            .where(StockBalance.quantity <= MAX_QUANTITY - quantity)
            .values(quantity=StockBalance.quantity + quantity, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount == 1:
            return

        # First stock for this pair; another writer may insert it concurrently
        savepoint = self.session.begin_nested()
        try:
            self.session.execute(
                insert(StockBalance).values(
                    id=uuid4(),
                    product_id=product_id,
                    location_id=location_id,
                    quantity=quantity,
                    updated_at=now,
                )
            )
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            logger.debug(
                "stock_balance_insert_race_retry",
                extra={"product_id": str(product_id), "location_id": str(location_id)},
            )
            if self.session.execute(stmt).rowcount != 1:
                raise ValidationError(
                    f"Balance would exceed the storable maximum of {MAX_QUANTITY}",
                    field="quantity",
                ) from None

    def current_balance(self, product_id: UUID, location_id: UUID, *, lock: bool = False) -> Decimal:
        stmt = (
            select(StockBalance.quantity)
            .where(StockBalance.product_id == product_id)
            .where(StockBalance.location_id == location_id)
        )
        if lock:
            stmt = stmt.with_for_update()
        value = self.session.execute(stmt).scalar_one_or_none()
        return value if value is not None else ZERO

    def apply_deltas(self, deltas: dict[Pair, Decimal], now: datetime) -> None:
        """
        Apply net signed deltas per pair.

        Every decrease is attempted before raising, so the error lists all
        failing pairs.

        Raises:
            InsufficientStockError: at least one decrease could not be covered.
        """
        failed: list[tuple[Pair, Decimal]] = []
        for pair in sorted(deltas, key=_pair_order):
            delta = deltas[pair]
            if delta > ZERO:
                self._increment(pair[0], pair[1], delta, now)
            elif delta < ZERO:
                if not self._decrement(pair[0], pair[1], -delta, now):
                    failed.append((pair, -delta))
        if failed:
            raise InsufficientStockError(self._shortfalls(failed))

    def _shortfalls(self, failed: Sequence[tuple[Pair, Decimal]]) -> list[Shortfall]:
        products = self._catalog.products_by_id(pair[0] for pair, _ in failed)
        locations = self._catalog.locations_by_id(pair[1] for pair, _ in failed)
        shortfalls = []
        for (product_id, location_id), requested in failed:
            product = products.get(product_id)
            location = locations.get(location_id)
            shortfalls.append(
                Shortfall(
                    product_id=product_id,
                    location_id=location_id,
                    available=self.current_balance(product_id, location_id),
                    requested=requested,
                    product_name=product.name if product else None,
                    location_name=location.name if location else None,
                    unit=product.unit if product else None,
                )
            )
        return shortfalls

    # Journal

    @staticmethod
    def _checked(entry: TransactionEntry) -> TransactionEntry:
        try:
            tx_type = TransactionType(entry.transaction_type)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown transaction type {entry.transaction_type!r}",
                field="transaction_type",
            ) from exc
        try:
            quantity = normalize_quantity(entry.quantity)
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise ValidationError(str(exc), field="quantity") from exc
        if quantity == ZERO:
            raise ValidationError("Journal entries cannot have zero quantity", field="quantity")
        if (quantity > ZERO) != (tx_type is TransactionType.IN):
            raise ValidationError(
                f"Quantity {quantity} does not match transaction type {tx_type.value!r}",
                field="quantity",
            )
        if entry.product_id is None or entry.location_id is None:
            raise ValidationError("Journal entries need a product and a location")
        return TransactionEntry(
            product_id=entry.product_id,
            location_id=entry.location_id,
            transaction_type=tx_type,
            quantity=quantity,
            user_id=entry.user_id,
            project_id=entry.project_id,
            notes=entry.notes,
            effective_date=entry.effective_date,
            reversal_of_id=entry.reversal_of_id,
        )

    def write_batch(
        self,
        entries: Iterable[TransactionEntry],
        batch_id: UUID | None = None,
    ) -> TransactionBatch:
        """
        Write ``entries`` as one batch and update balances.

        Preconditions:
            The caller is inside a transaction it will roll back on error.

        Raises:
            ValidationError: empty batch or an inconsistent entry.
            InsufficientStockError: a pair would go below zero.
        """
        checked = [self._checked(e) for e in entries]
        if not checked:
            raise ValidationError("A journal batch needs at least one entry", field="entries")

        batch_id = batch_id or uuid4()
        now = self._clock.now()
        today = self._clock.business_date()

        deltas: dict[Pair, Decimal] = {}
        for entry in checked:
            key = (entry.product_id, entry.location_id)
            deltas[key] = deltas.get(key, ZERO) + entry.quantity
        for delta in deltas.values():
            if abs(delta) > MAX_QUANTITY:
                raise ValidationError(
                    f"Net quantity {delta} exceeds the storable maximum of {MAX_QUANTITY}",
                    field="quantity",
                )
        self.apply_deltas(deltas, now)

        rows = []
        for entry in checked:
            row = StockTransaction(
                seq=self._sequences.next_value(SequenceService.STOCK_TRANSACTION),
                created_at=now,
                effective_date=entry.effective_date or today,
                product_id=entry.product_id,
                location_id=entry.location_id,
                project_id=entry.project_id,
                user_id=entry.user_id,
                transaction_type=entry.transaction_type.value,
                quantity=entry.quantity,
                notes=entry.notes,
                batch_id=batch_id,
                reversal_of_id=entry.reversal_of_id,
            )
            self.session.add(row)
            rows.append(row)
        self.session.flush()

        logger.info(
            "stock_journal_appended",
            extra={
                "batch_id": str(batch_id),
                "entry_count": len(rows),
                "pair_count": len(deltas),
            },
        )
        effective = checked[0].effective_date or today
        return TransactionBatch(
            batch_id=batch_id,
            transaction_ids=tuple(row.id for row in rows),
            created_at=now,
            effective_date=effective,
            project_id=checked[0].project_id,
        )

    def append(self, entries: Iterable[TransactionEntry]) -> tuple[UUID, ...]:
        """All-or-nothing append; returns the new transaction ids in order."""
        return self.write_batch(entries).transaction_ids

    # Movements

    def receive(
        self,
        product_id: UUID,
        location_id: UUID,
        quantity,
        actor_id: UUID,
        notes: str | None = None,
        effective_date: date | None = None,
    ) -> TransactionBatch:
        """Goods in: one ``in`` entry."""
        quantity = validate_positive_quantity(quantity)
        self._catalog.require_active_product(product_id)
        self._catalog.require_active_location(location_id)
        batch = self.write_batch(
            [
                TransactionEntry.stock_in(
                    product_id,
                    location_id,
                    quantity,
                    actor_id,
                    notes=notes,
                    effective_date=effective_date,
                )
            ]
        )
        logger.info(
            "stock_received",
            extra={
                "product_id": str(product_id),
                "location_id": str(location_id),
                "quantity": str(quantity),
            },
        )
        return batch

    def transfer(
        self,
        product_id: UUID,
        from_location_id: UUID,
        to_location_id: UUID,
        quantity,
        actor_id: UUID,
        notes: str | None = None,
    ) -> TransactionBatch:
        """
        Move stock between locations: an ``out`` and an ``in`` entry in one
        batch.  The out side is a conditional decrement like any booking.
        """
        if from_location_id == to_location_id:
            raise ValidationError("Source and destination location must differ", field="to_location_id")
        quantity = validate_positive_quantity(quantity)
        self._catalog.require_active_product(product_id)
        source = self._catalog.require_active_location(from_location_id)
        target = self._catalog.require_active_location(to_location_id)
        notes = notes or f"Verplaatst van {source.name} naar {target.name}"
        batch = self.write_batch(
            [
                TransactionEntry.stock_out(product_id, from_location_id, quantity, actor_id, notes=notes),
                TransactionEntry.stock_in(product_id, to_location_id, quantity, actor_id, notes=notes),
            ]
        )
        logger.info(
            "stock_transferred",
            extra={
                "product_id": str(product_id),
                "from_location_id": str(from_location_id),
                "to_location_id": str(to_location_id),
                "quantity": str(quantity),
            },
        )
        return batch

    def adjust_to_count(
        self,
        product_id: UUID,
        location_id: UUID,
        counted,
        actor_id: UUID,
        notes: str | None = None,
    ) -> TransactionBatch | None:
        """
        Bring the balance to a physically counted quantity.

        Writes the difference as one ``in`` or ``out`` entry.  Returns None
        when the count matches the balance.
        """
        try:
            counted = normalize_quantity(counted)
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise ValidationError(str(exc), field="counted") from exc
        if counted < ZERO:
            raise ValidationError("Counted quantity cannot be negative", field="counted")
        self._catalog.require_active_product(product_id)
        self._catalog.require_active_location(location_id)

        current = self.current_balance(product_id, location_id, lock=True)
        delta = counted - current
        if delta == ZERO:
            return None
        notes = notes or f"Voorraadtelling: {_plain(current)} -> {_plain(counted)}"
        if delta > ZERO:
            entry = TransactionEntry.stock_in(product_id, location_id, delta, actor_id, notes=notes)
        else:
            entry = TransactionEntry.stock_out(product_id, location_id, delta, actor_id, notes=notes)
        batch = self.write_batch([entry])
        logger.info(
            "stock_adjusted",
            extra={
                "product_id": str(product_id),
                "location_id": str(location_id),
                "previous": str(current),
                "counted": str(counted),
            },
        )
        return batch
