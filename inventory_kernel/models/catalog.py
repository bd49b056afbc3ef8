"""
Module: inventory_kernel.models.catalog
Responsibility: ORM persistence for catalog reference data -- products,
    locations, and the local mirror of externally owned projects.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - sku is unique (uq_product_sku); ean is unique when present
      (uq_product_ean -- NULLs never collide).
    - Location name is unique (uq_location_name).
    - Catalog rows are never hard-deleted while journal rows reference them;
      is_active=False is the only way to retire an entry (ORM listener in
      db/immutability.py rejects DELETE).

Failure modes:
    - IntegrityError on duplicate sku / ean / location name (translated to
      DuplicateReferenceError by CatalogService).
"""

from decimal import Decimal
from enum import Enum

from sqlalchemy import Boolean, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, TrackedBase


class LocationType(str, Enum):
    """Kind of physical place stock can sit."""

    WAREHOUSE = "warehouse"
    VEHICLE = "vehicle"
    DEPOT = "depot"
    OTHER = "other"


class Product(TrackedBase):
    """
    A stocked article.

    Identity is immutable; descriptive attributes are maintained by catalog
    management.  minimum_stock drives low-stock alerts; price is optional and
    only used for valuation.
    """

    __tablename__ = "products"

    __table_args__ = (
        UniqueConstraint("sku", name="uq_product_sku"),
        UniqueConstraint("ean", name="uq_product_ean"),
        Index("idx_product_name", "name"),
        Index("idx_product_category", "category"),
    )

    sku: Mapped[str] = mapped_column(String(100), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Barcode
    ean: Mapped[str | None] = mapped_column(String(20), nullable=True)

    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    # Measurement unit, e.g. "kg", "stuks", "doos"
    unit: Mapped[str] = mapped_column(String(30), nullable=False, default="stuks")

    minimum_stock: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))

    price: Mapped[Decimal | None] = mapped_column(nullable=True)

    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    supplier: Mapped[str | None] = mapped_column(String(255), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Product {self.sku}: {self.name}>"


class Location(TrackedBase):
    """A warehouse, vehicle, depot or other place that holds stock."""

    __tablename__ = "locations"

    __table_args__ = (
        UniqueConstraint("name", name="uq_location_name"),
        Index("idx_location_active", "is_active"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    location_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=LocationType.WAREHOUSE.value,
    )

    license_plate: Mapped[str | None] = mapped_column(String(20), nullable=True)

    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Location {self.name}>"


class ProjectRef(Base):
    """
    Local mirror of a project owned by the Projects collaborator.

    Only id, name and project number are needed here: bookings are attributed
    to a project and bulk imports resolve projects by name.
    """

    __tablename__ = "projects"

    __table_args__ = (
        Index("idx_project_name", "name"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    project_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<ProjectRef {self.name}>"


__all__ = ["LocationType", "Product", "Location", "ProjectRef"]
