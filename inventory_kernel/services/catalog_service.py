"""
CatalogService -- products and locations.

Responsibility:
    Read path: resolve products by id/SKU/EAN and locations by id/name, list
    active locations, fuzzy location search for bulk import.
    Write path (catalog management and seeding): register, upsert by SKU,
    soft-disable.

Architecture position:
    Kernel > Services.  Consumed by BookingService, StockJournal,
    the import services and InventoryEngine.

Invariants enforced:
    - SKU, EAN and location name are unique (DuplicateReferenceError).
    - Catalog rows are never deleted; deactivate_* sets is_active=False.
    - Inactive products/locations are not bookable (require_active_*).

Failure modes:
    - ProductNotFoundError / LocationNotFoundError for unknown references.
    - InactiveReferenceError for a disabled reference on the booking path.
    - ValidationError when a lookup names no selector or more than one.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.db.text import contains_ci, equals_ci
from inventory_kernel.db.types import normalize_quantity
from inventory_kernel.exceptions import (
    DuplicateReferenceError,
    InactiveReferenceError,
    LocationNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.catalog import Location, LocationType, Product
from inventory_kernel.services.base import BaseService

logger = get_logger("services.catalog")

# Product attributes maintained by catalog management (identity excluded)
PRODUCT_FIELDS = (
    "name",
    "ean",
    "category",
    "unit",
    "minimum_stock",
    "price",
    "description",
    "supplier",
)


def _one_selector(**selectors) -> tuple[str, object]:
    given = [(k, v) for k, v in selectors.items() if v is not None]
    if len(given) != 1:
        raise ValidationError(
            f"Exactly one of {', '.join(selectors)} must be given",
            field=None,
        )
    return given[0]


class CatalogService(BaseService):
    """
    Catalog store for products and locations.

    Contract:
        Lookups return ORM rows attached to the caller's session.  Writes
        flush but never commit.
    """

    # Read path

    def find_product(
        self,
        *,
        product_id: UUID | None = None,
        sku: str | None = None,
        ean: str | None = None,
    ) -> Product:
        field, value = _one_selector(product_id=product_id, sku=sku, ean=ean)
        if field == "product_id":
            product = self.session.get(Product, value)
        else:
            column = Product.sku if field == "sku" else Product.ean
            product = self.session.execute(
                select(Product).where(column == str(value).strip())
            ).scalar_one_or_none()
        if product is None:
            raise ProductNotFoundError(str(value), field="id" if field == "product_id" else field)
        return product

    def find_location(
        self,
        *,
        location_id: UUID | None = None,
        name: str | None = None,
    ) -> Location:
        """Location by id, or by exact (case-insensitive) name."""
        field, value = _one_selector(location_id=location_id, name=name)
        if field == "location_id":
            location = self.session.get(Location, value)
        else:
            location = self.session.execute(
                select(Location).where(equals_ci(Location.name, str(value).strip()))
            ).scalar_one_or_none()
        if location is None:
            raise LocationNotFoundError(str(value), field="id" if field == "location_id" else "name")
        return location

    def list_active_locations(self) -> list[Location]:
        return list(
            self.session.execute(
                select(Location).where(Location.is_active.is_(True)).order_by(Location.name)
            ).scalars()
        )

    def list_products(self, active_only: bool = True) -> list[Product]:
        stmt = select(Product)
        if active_only:
            stmt = stmt.where(Product.is_active.is_(True))
        return list(self.session.execute(stmt.order_by(Product.name)).scalars())

    def search_locations(self, fragment: str) -> list[Location]:
        """Active locations whose name contains ``fragment`` (case-insensitive)."""
        fragment = fragment.strip()
        if not fragment:
            return []
        return list(
            self.session.execute(
                select(Location)
                .where(Location.is_active.is_(True))
                .where(contains_ci(Location.name, fragment))
                .order_by(Location.name)
            ).scalars()
        )

    def require_active_product(self, product_id: UUID) -> Product:
        product = self.find_product(product_id=product_id)
        if not product.is_active:
            raise InactiveReferenceError("Product", str(product_id))
        return product

    def require_active_location(self, location_id: UUID) -> Location:
        location = self.find_location(location_id=location_id)
        if not location.is_active:
            raise InactiveReferenceError("Location", str(location_id))
        return location

    def products_by_id(self, product_ids: Iterable[UUID]) -> dict[UUID, Product]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.session.execute(select(Product).where(Product.id.in_(ids))).scalars()
        return {row.id: row for row in rows}

    def locations_by_id(self, location_ids: Iterable[UUID]) -> dict[UUID, Location]:
        ids = set(location_ids)
        if not ids:
            return {}
        rows = self.session.execute(select(Location).where(Location.id.in_(ids))).scalars()
        return {row.id: row for row in rows}

    # Write path

    def _flush_unique(self, entity, entity_type: str, field: str, value: str) -> None:
        savepoint = self.session.begin_nested()
        try:
            self.session.add(entity)
            self.session.flush()
            savepoint.commit()
        except IntegrityError as exc:
            savepoint.rollback()
            raise DuplicateReferenceError(entity_type, field, value) from exc

    def _check_product_unique(self, sku: str, ean: str | None, exclude_id: UUID | None = None) -> None:
        stmt = select(Product.id).where(Product.sku == sku)
        if exclude_id is not None:
            stmt = stmt.where(Product.id != exclude_id)
        if self.session.execute(stmt).first() is not None:
            raise DuplicateReferenceError("Product", "sku", sku)
        if ean:
            stmt = select(Product.id).where(Product.ean == ean)
            if exclude_id is not None:
                stmt = stmt.where(Product.id != exclude_id)
            if self.session.execute(stmt).first() is not None:
                raise DuplicateReferenceError("Product", "ean", ean)

    def register_product(
        self,
        sku: str,
        name: str,
        actor_id: UUID,
        *,
        category: str = "",
        unit: str = "stuks",
        minimum_stock: Decimal | int | str = 0,
        ean: str | None = None,
        price: Decimal | None = None,
        description: str | None = None,
        supplier: str | None = None,
    ) -> Product:
        """
        Add a product to the catalog.

        Raises:
            ValidationError: empty sku/name or an invalid minimum_stock.
            DuplicateReferenceError: sku or ean already in use.
        """
        sku = (sku or "").strip()
        name = (name or "").strip()
        if not sku:
            raise ValidationError("Product SKU is required", field="sku")
        if not name:
            raise ValidationError("Product name is required", field="name")
        ean = (ean or "").strip() or None
        self._check_product_unique(sku, ean)

        product = Product(
            sku=sku,
            name=name,
            ean=ean,
            category=category or "",
            unit=unit or "stuks",
            minimum_stock=self._non_negative(minimum_stock, "minimum_stock"),
            price=self._non_negative(price, "price") if price is not None else None,
            description=description,
            supplier=supplier,
            created_by_id=actor_id,
        )
        self._flush_unique(product, "Product", "sku", sku)
        logger.info("product_registered", extra={"product_id": str(product.id), "sku": sku})
        return product

    def upsert_product(self, sku: str, actor_id: UUID, **fields) -> tuple[Product, bool]:
        """
        Create or update the product with this SKU.

        Only attributes in PRODUCT_FIELDS may be passed; None leaves an
        existing value untouched.

        Returns:
            (product, created)
        """
        unknown = set(fields) - set(PRODUCT_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown product fields: {sorted(unknown)}")
        sku = (sku or "").strip()
        existing = self.session.execute(
            select(Product).where(Product.sku == sku)
        ).scalar_one_or_none() if sku else None

        if existing is None:
            name = fields.pop("name", None)
            provided = {k: v for k, v in fields.items() if v is not None}
            return self.register_product(sku, name, actor_id, **provided), True

        if fields.get("ean"):
            self._check_product_unique(sku, fields["ean"].strip(), exclude_id=existing.id)
        for key, value in fields.items():
            if value is None:
                continue
            if key in ("minimum_stock", "price"):
                value = self._non_negative(value, key)
            elif isinstance(value, str):
                value = value.strip()
            if key == "ean":
                value = value or None
            if key == "name" and not value:
                raise ValidationError("Product name is required", field="name")
            setattr(existing, key, value)
        existing.updated_by_id = actor_id
        self.session.flush()
        logger.info("product_updated", extra={"product_id": str(existing.id), "sku": sku})
        return existing, False

    def register_location(
        self,
        name: str,
        actor_id: UUID,
        *,
        location_type: LocationType | str = LocationType.WAREHOUSE,
        license_plate: str | None = None,
        description: str | None = None,
    ) -> Location:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Location name is required", field="name")
        try:
            location_type = LocationType(location_type)
        except ValueError as exc:
            raise ValidationError(
                f"Unknown location type {location_type!r}", field="location_type"
            ) from exc
        clash = self.session.execute(
            select(Location.id).where(equals_ci(Location.name, name))
        ).first()
        if clash is not None:
            raise DuplicateReferenceError("Location", "name", name)

        location = Location(
            name=name,
            location_type=location_type.value,
            license_plate=license_plate,
            description=description,
            created_by_id=actor_id,
        )
        self._flush_unique(location, "Location", "name", name)
        logger.info("location_registered", extra={"location_id": str(location.id), "location_name": name})
        return location

    def deactivate_product(self, product_id: UUID, actor_id: UUID) -> Product:
        product = self.find_product(product_id=product_id)
        product.is_active = False
        product.updated_by_id = actor_id
        self.session.flush()
        logger.info("product_deactivated", extra={"product_id": str(product_id)})
        return product

    def deactivate_location(self, location_id: UUID, actor_id: UUID) -> Location:
        location = self.find_location(location_id=location_id)
        location.is_active = False
        location.updated_by_id = actor_id
        self.session.flush()
        logger.info("location_deactivated", extra={"location_id": str(location_id)})
        return location

    @staticmethod
    def _non_negative(value, field: str) -> Decimal:
        try:
            quantity = normalize_quantity(value)
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise ValidationError(f"Invalid {field}: {value!r}", field=field) from exc
        if quantity < 0:
            raise ValidationError(f"{field} cannot be negative", field=field)
        return quantity
