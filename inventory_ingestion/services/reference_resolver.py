"""
Reference resolution for bulk import rows.

Responsibility:
    Turn the free-text project name, SKU and location name of an import row
    into ids.  Projects and locations are matched by fragment; the SKU must
    match exactly.

Architecture position:
    Ingestion > Services.  Reads through ProjectDirectory and CatalogService
    only; never writes.

Invariants enforced:
    - A fragment resolves only when the choice is unambiguous: an exact
      case-insensitive match (project name or number, location name) wins,
      otherwise exactly one candidate must contain the fragment.
    - Inactive products are never resolved.

Failure modes:
    - ImportRowError with reason_code PROJECT_NOT_FOUND, AMBIGUOUS_PROJECT,
      PRODUCT_NOT_FOUND, INACTIVE_REFERENCE, LOCATION_NOT_FOUND or
      AMBIGUOUS_LOCATION.
"""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar
from uuid import UUID

from inventory_kernel.domain.dtos import ProjectInfo
from inventory_kernel.exceptions import ImportRowError, ProductNotFoundError
from inventory_kernel.models.catalog import Location, Product
from inventory_kernel.services.catalog_service import CatalogService
from inventory_kernel.services.project_directory import ProjectDirectory

T = TypeVar("T")

_MAX_LISTED = 5


def pick_unambiguous(
    fragment: str,
    candidates: Sequence[T],
    exact_keys: Callable[[T], Sequence[str | None]],
) -> tuple[T | None, list[T]]:
    """
    Choose one candidate for a search fragment.

    Returns (choice, competing).  choice is None when nothing matched
    (competing empty) or when the match is ambiguous (competing lists the
    tied candidates).
    """
    if not candidates:
        return None, []
    needle = fragment.strip().lower()
    exact = [
        c for c in candidates
        if any(key and key.strip().lower() == needle for key in exact_keys(c))
    ]
    if len(exact) == 1:
        return exact[0], []
    if len(exact) > 1:
        return None, list(exact)
    if len(candidates) == 1:
        return candidates[0], []
    return None, list(candidates)


def _listing(names: Sequence[str]) -> str:
    shown = ", ".join(names[:_MAX_LISTED])
    if len(names) > _MAX_LISTED:
        shown += f" (+{len(names) - _MAX_LISTED})"
    return shown


class ReferenceResolver:
    """
    Resolves import references; results are cached per resolver.

    Contract:
        One resolver serves one import run.  Each method returns an id or
        raises ImportRowError for the given row number.
    """

    def __init__(self, projects: ProjectDirectory, catalog: CatalogService):
        self._projects = projects
        self._catalog = catalog
        self._project_cache: dict[str, tuple[ProjectInfo | None, list[ProjectInfo]]] = {}
        self._product_cache: dict[str, Product | None] = {}
        self._location_cache: dict[str, tuple[Location | None, list[Location]]] = {}

    def project(self, fragment: str, row_number: int) -> ProjectInfo:
        key = fragment.strip().lower()
        if key not in self._project_cache:
            self._project_cache[key] = pick_unambiguous(
                fragment,
                self._projects.search(fragment),
                lambda p: (p.name, p.project_number),
            )
        choice, competing = self._project_cache[key]
        if choice is not None:
            return choice
        if competing:
            raise ImportRowError(
                row_number,
                f"Project '{fragment}' is ambiguous: "
                + _listing([p.display_name for p in competing]),
                "AMBIGUOUS_PROJECT",
            )
        raise ImportRowError(row_number, f"Project '{fragment}' not found", "PROJECT_NOT_FOUND")

    def product(self, sku: str, row_number: int) -> UUID:
        key = sku.strip()
        if key not in self._product_cache:
            try:
                self._product_cache[key] = self._catalog.find_product(sku=key)
            except ProductNotFoundError:
                self._product_cache[key] = None
        product = self._product_cache[key]
        if product is None:
            raise ImportRowError(row_number, f"Product SKU '{key}' not found", "PRODUCT_NOT_FOUND")
        if not product.is_active:
            raise ImportRowError(
                row_number, f"Product '{key}' is inactive", "INACTIVE_REFERENCE"
            )
        return product.id

    def location(self, fragment: str, row_number: int) -> UUID:
        key = fragment.strip().lower()
        if key not in self._location_cache:
            self._location_cache[key] = pick_unambiguous(
                fragment,
                self._catalog.search_locations(fragment),
                lambda loc: (loc.name,),
            )
        choice, competing = self._location_cache[key]
        if choice is not None:
            return choice.id
        if competing:
            raise ImportRowError(
                row_number,
                f"Location '{fragment}' is ambiguous: "
                + _listing([loc.name for loc in competing]),
                "AMBIGUOUS_LOCATION",
            )
        raise ImportRowError(row_number, f"Location '{fragment}' not found", "LOCATION_NOT_FOUND")
