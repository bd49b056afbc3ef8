"""
Module: inventory_kernel.selectors.journal_selector
Responsibility: Read-only queries over the stock journal: filtered, newest
    first, streamed as TransactionView DTOs with product, location and
    project display data attached.
Architecture position: Kernel > Selectors.  May import from models/, domain
    DTOs and selectors/base.py.  Project names come from a ProjectDirectory
    passed in by the caller.

Invariants enforced:
    - Ordering is deterministic: created_at DESC, then seq DESC.
    - Date ranges are inclusive and apply to effective_date.
    - A reversed row and its compensating row are hidden together unless
      include_reversed=True, so a default listing never shows a deleted
      booking.

Failure modes:
    - Returns an empty iterator when nothing matches.
"""

from collections.abc import Iterator
from itertools import islice
from uuid import UUID

from sqlalchemy import exists, select
from sqlalchemy.orm import Session, aliased

from inventory_kernel.domain.dtos import ProjectInfo, TransactionFilter, TransactionView
from inventory_kernel.models.stock import StockTransaction, TransactionType
from inventory_kernel.selectors.base import BaseSelector

_STREAM_BATCH = 500


def to_view(
    row: StockTransaction,
    project: ProjectInfo | None = None,
    is_reversed: bool = False,
) -> TransactionView:
    return TransactionView(
        id=row.id,
        seq=row.seq,
        created_at=row.created_at,
        effective_date=row.effective_date,
        transaction_type=TransactionType(row.transaction_type),
        quantity=row.quantity,
        product_id=row.product_id,
        product_name=row.product.name,
        product_sku=row.product.sku,
        product_category=row.product.category,
        product_unit=row.product.unit,
        location_id=row.location_id,
        location_name=row.location.name,
        user_id=row.user_id,
        batch_id=row.batch_id,
        project_id=row.project_id,
        project_name=project.name if project else None,
        project_number=project.project_number if project else None,
        notes=row.notes,
        reversal_of_id=row.reversal_of_id,
        is_reversed=is_reversed,
    )


class JournalSelector(BaseSelector):
    """Filtered reads of the stock journal."""

    def __init__(self, session: Session, projects=None):
        super().__init__(session)
        if projects is None:
            from inventory_kernel.services.project_directory import SqlProjectDirectory

            projects = SqlProjectDirectory(session)
        self._projects = projects

    def _statement(self, criteria: TransactionFilter):
        reversal = aliased(StockTransaction)
        stmt = select(StockTransaction, reversal.id).outerjoin(
            reversal, reversal.reversal_of_id == StockTransaction.id
        )
        if not criteria.include_reversed:
            undone = aliased(StockTransaction)
            stmt = stmt.where(StockTransaction.reversal_of_id.is_(None)).where(
                ~exists().where(undone.reversal_of_id == StockTransaction.id)
            )
        if criteria.date_range is not None:
            if criteria.date_range.start is not None:
                stmt = stmt.where(StockTransaction.effective_date >= criteria.date_range.start)
            if criteria.date_range.end is not None:
                stmt = stmt.where(StockTransaction.effective_date <= criteria.date_range.end)
        if criteria.product_id is not None:
            stmt = stmt.where(StockTransaction.product_id == criteria.product_id)
        if criteria.location_id is not None:
            stmt = stmt.where(StockTransaction.location_id == criteria.location_id)
        if criteria.project_id is not None:
            stmt = stmt.where(StockTransaction.project_id == criteria.project_id)
        if criteria.user_id is not None:
            stmt = stmt.where(StockTransaction.user_id == criteria.user_id)
        if criteria.transaction_type is not None:
            stmt = stmt.where(
                StockTransaction.transaction_type == TransactionType(criteria.transaction_type).value
            )
        return stmt.order_by(StockTransaction.created_at.desc(), StockTransaction.seq.desc())

    def query(self, criteria: TransactionFilter | None = None) -> Iterator[TransactionView]:
        """
        Stream matching journal rows, newest first.

        Search text is matched case-insensitively against project name and
        number, product name, SKU and category, location name and notes.
        """
        criteria = criteria or TransactionFilter()
        views = self._stream(criteria)
        if criteria.search_text and criteria.search_text.strip():
            views = (v for v in views if v.matches_text(criteria.search_text))
        if criteria.limit is not None:
            views = islice(views, criteria.limit)
        return views

    def _stream(self, criteria: TransactionFilter) -> Iterator[TransactionView]:
        projects: dict[UUID, ProjectInfo | None] = {}
        result = self.session.execute(
            self._statement(criteria).execution_options(yield_per=_STREAM_BATCH)
        )
        for row, reversed_by in result:
            project = None
            if row.project_id is not None:
                if row.project_id not in projects:
                    projects[row.project_id] = self._projects.get(row.project_id)
                project = projects[row.project_id]
            yield to_view(row, project, is_reversed=reversed_by is not None)

    def get(self, transaction_id: UUID) -> TransactionView | None:
        row = self.session.get(StockTransaction, transaction_id)
        if row is None:
            return None
        reversed_by = self.session.execute(
            select(StockTransaction.id).where(StockTransaction.reversal_of_id == transaction_id)
        ).scalar_one_or_none()
        project = self._projects.get(row.project_id) if row.project_id else None
        return to_view(row, project, is_reversed=reversed_by is not None)

    def batch(self, batch_id: UUID) -> list[TransactionView]:
        """All rows of one booking/append, in write order."""
        rows = self.session.execute(
            select(StockTransaction)
            .where(StockTransaction.batch_id == batch_id)
            .order_by(StockTransaction.seq)
        ).scalars()
        return [
            to_view(row, self._projects.get(row.project_id) if row.project_id else None)
            for row in rows
        ]
