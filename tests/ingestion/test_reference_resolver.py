"""
Reference resolution tests.

Tests cover:
- Exact (case-insensitive) name or number beats partial matches
- A single partial match resolves; several are ambiguous
- Unknown and inactive references
"""

from uuid import uuid4

import pytest

from inventory_ingestion.services.reference_resolver import ReferenceResolver, pick_unambiguous
from inventory_kernel.domain.dtos import ProjectInfo
from inventory_kernel.exceptions import ImportRowError
from inventory_kernel.services.project_directory import (
    InMemoryProjectDirectory,
    SqlProjectDirectory,
)


@pytest.fixture
def resolver(services, session):
    return ReferenceResolver(SqlProjectDirectory(session), services.catalog)


class TestPickUnambiguous:
    def test_nothing(self):
        assert pick_unambiguous("x", [], lambda c: (c,)) == (None, [])

    def test_exact_beats_partial(self):
        assert pick_unambiguous("bus 2", ["Bus 2", "Bus 21"], lambda c: (c,)) == ("Bus 2", [])

    def test_single_partial(self):
        assert pick_unambiguous("magazijn", ["Magazijn Moordrecht"], lambda c: (c,)) == (
            "Magazijn Moordrecht",
            [],
        )

    def test_several_partials(self):
        choice, competing = pick_unambiguous("bus", ["Bus 12", "Bus 2"], lambda c: (c,))
        assert choice is None
        assert competing == ["Bus 12", "Bus 2"]


class TestProjects:
    def test_exact_name_wins_over_longer_name(self, resolver, seed):
        assert resolver.project("J. Raaijmakers", 2).id == seed.raaijmakers

    def test_case_insensitive(self, resolver, seed):
        assert resolver.project("a.s. schuch", 2).id == seed.schuch

    def test_project_number(self, resolver, seed):
        assert resolver.project("2025-003", 2).id == seed.renovation

    def test_single_partial_match(self, resolver, seed):
        assert resolver.project("Renovatie", 2).id == seed.renovation

    def test_ambiguous(self, resolver):
        with pytest.raises(ImportRowError) as exc_info:
            resolver.project("Raaijmakers", 5)
        assert exc_info.value.reason_code == "AMBIGUOUS_PROJECT"
        assert exc_info.value.row_number == 5
        assert "J. Raaijmakers" in exc_info.value.reason
        assert "Raaijmakers Renovatie" in exc_info.value.reason

    def test_not_found(self, resolver):
        with pytest.raises(ImportRowError) as exc_info:
            resolver.project("Onbekend", 3)
        assert exc_info.value.reason_code == "PROJECT_NOT_FOUND"


class TestProducts:
    def test_exact_sku(self, resolver, seed):
        assert resolver.product("CEM-25KG", 2) == seed.cement

    def test_partial_sku_not_accepted(self, resolver):
        with pytest.raises(ImportRowError) as exc_info:
            resolver.product("CEM", 2)
        assert exc_info.value.reason_code == "PRODUCT_NOT_FOUND"

    def test_inactive(self, resolver, services, seed, test_actor_id):
        services.catalog.deactivate_product(seed.foil, test_actor_id)
        with pytest.raises(ImportRowError) as exc_info:
            resolver.product("AFD-FOL-45", 4)
        assert exc_info.value.reason_code == "INACTIVE_REFERENCE"


class TestLocations:
    def test_exact_name(self, resolver, seed):
        assert resolver.location("bus 2", 2) == seed.van_2

    def test_exact_wins_when_names_overlap(self, resolver, services, seed, test_actor_id):
        services.catalog.register_location("Bus 21", test_actor_id, location_type="vehicle")
        assert resolver.location("Bus 2", 2) == seed.van_2

    def test_single_partial_match(self, resolver, seed):
        assert resolver.location("Moordrecht", 2) == seed.warehouse

    def test_ambiguous(self, resolver):
        with pytest.raises(ImportRowError) as exc_info:
            resolver.location("Bus", 7)
        assert exc_info.value.reason_code == "AMBIGUOUS_LOCATION"
        assert "Bus 12" in exc_info.value.reason

    def test_not_found(self, resolver):
        with pytest.raises(ImportRowError) as exc_info:
            resolver.location("Bus 99", 2)
        assert exc_info.value.reason_code == "LOCATION_NOT_FOUND"

    def test_inactive_location_not_resolved(self, resolver, services, seed, test_actor_id):
        services.catalog.deactivate_location(seed.van_12, test_actor_id)
        with pytest.raises(ImportRowError) as exc_info:
            resolver.location("Bus 12", 2)
        assert exc_info.value.reason_code == "LOCATION_NOT_FOUND"


class TestInMemoryDirectory:
    """The resolver works against any ProjectDirectory, not only the projects table."""

    def test_resolves_from_a_plain_list(self, services):
        keep = ProjectInfo(uuid4(), "Van Dijk Badkamer", "2025-010")
        directory = InMemoryProjectDirectory(
            [keep, ProjectInfo(uuid4(), "Van Dijk Keuken", "2025-011", is_active=False)]
        )
        resolver = ReferenceResolver(directory, services.catalog)

        assert resolver.project("van dijk", 2) == keep
        assert directory.get(keep.id) == keep
        with pytest.raises(ImportRowError):
            resolver.project("Keuken", 2)
