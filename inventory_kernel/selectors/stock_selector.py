"""
Module: inventory_kernel.selectors.stock_selector
Responsibility: Read-only stock ledger queries: on-hand quantity per pair,
    stock browse per location and per product, low-stock alerts, and the
    integrity check that compares materialized balances with the journal.
Architecture position: Kernel > Selectors.  May import from models/, domain
    DTOs and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - balance() of a pair that never held stock is 0, not an error.
    - find_discrepancies() is empty whenever the journal and the balances
      were only ever written through StockJournal.

Failure modes:
    - Returns empty lists when there is nothing to report.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from inventory_kernel.db.types import ZERO
from inventory_kernel.domain.dtos import BalanceDiscrepancy, LocationStock, LowStockAlert
from inventory_kernel.models.catalog import Location, Product
from inventory_kernel.models.stock import StockBalance, StockTransaction
from inventory_kernel.selectors.base import BaseSelector


class StockLedgerSelector(BaseSelector):
    """Stock ledger reads over the materialized balances."""

    def balance(self, product_id: UUID, location_id: UUID) -> Decimal:
        value = self.session.execute(
            select(StockBalance.quantity)
            .where(StockBalance.product_id == product_id)
            .where(StockBalance.location_id == location_id)
        ).scalar_one_or_none()
        return value if value is not None else ZERO

    def _stock_rows(self, *criteria, order_by):
        stmt = (
            select(StockBalance.quantity, Product, Location)
            .join(Product, Product.id == StockBalance.product_id)
            .join(Location, Location.id == StockBalance.location_id)
            .where(StockBalance.quantity > ZERO)
        )
        for criterion in criteria:
            stmt = stmt.where(criterion)
        return [
            LocationStock(
                product_id=product.id,
                location_id=location.id,
                sku=product.sku,
                name=product.name,
                category=product.category,
                unit=product.unit,
                quantity=quantity,
                minimum_stock=product.minimum_stock,
                location_name=location.name,
            )
            for quantity, product, location in self.session.execute(stmt.order_by(*order_by))
        ]

    def balances_at_location(self, location_id: UUID) -> list[LocationStock]:
        """Products on hand at a location (quantity > 0), by product name."""
        return self._stock_rows(
            StockBalance.location_id == location_id,
            order_by=(Product.name, Product.sku),
        )

    def balances_for_product(self, product_id: UUID) -> list[LocationStock]:
        """Locations holding a product (quantity > 0), by location name."""
        return self._stock_rows(
            StockBalance.product_id == product_id,
            order_by=(Location.name,),
        )

    def total_for_product(self, product_id: UUID) -> Decimal:
        value = self.session.execute(
            select(func.sum(StockBalance.quantity)).where(StockBalance.product_id == product_id)
        ).scalar_one_or_none()
        return value if value is not None else ZERO

    def journal_balance(self, product_id: UUID, location_id: UUID) -> Decimal:
        """The pair's quantity recomputed from the journal."""
        value = self.session.execute(
            select(func.sum(StockTransaction.quantity))
            .where(StockTransaction.product_id == product_id)
            .where(StockTransaction.location_id == location_id)
        ).scalar_one_or_none()
        return value if value is not None else ZERO

    def find_discrepancies(self) -> list[BalanceDiscrepancy]:
        """Pairs whose materialized balance differs from the journal sum."""
        journal = {
            (product_id, location_id): total
            for product_id, location_id, total in self.session.execute(
                select(
                    StockTransaction.product_id,
                    StockTransaction.location_id,
                    func.sum(StockTransaction.quantity),
                ).group_by(StockTransaction.product_id, StockTransaction.location_id)
            )
        }
        materialized = {
            (product_id, location_id): quantity
            for product_id, location_id, quantity in self.session.execute(
                select(StockBalance.product_id, StockBalance.location_id, StockBalance.quantity)
            )
        }
        discrepancies = []
        for pair in sorted(set(journal) | set(materialized), key=lambda p: (str(p[0]), str(p[1]))):
            expected = journal.get(pair, ZERO)
            actual = materialized.get(pair, ZERO)
            if expected != actual:
                discrepancies.append(
                    BalanceDiscrepancy(
                        product_id=pair[0],
                        location_id=pair[1],
                        materialized=actual,
                        journal=expected,
                    )
                )
        return discrepancies

    def low_stock(self, location_id: UUID | None = None) -> list[LowStockAlert]:
        """
        Stocked pairs of active products at active locations whose quantity
        is below the product's minimum_stock.
        """
        stmt = (
            select(StockBalance.quantity, Product, Location)
            .join(Product, Product.id == StockBalance.product_id)
            .join(Location, Location.id == StockBalance.location_id)
            .where(StockBalance.quantity < Product.minimum_stock)
            .where(Product.is_active.is_(True))
            .where(Location.is_active.is_(True))
        )
        if location_id is not None:
            stmt = stmt.where(StockBalance.location_id == location_id)
        stmt = stmt.order_by(Location.name, Product.name)
        return [
            LowStockAlert(
                product_id=product.id,
                location_id=location.id,
                sku=product.sku,
                product_name=product.name,
                location_name=location.name,
                unit=product.unit,
                quantity=quantity,
                minimum_stock=product.minimum_stock,
            )
            for quantity, product, location in self.session.execute(stmt)
        ]
