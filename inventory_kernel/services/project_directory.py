"""
ProjectDirectory -- read access to the externally owned project entity.

Responsibility:
    The inventory core only needs a project's id, name and number: to
    validate a booking, to write the default note, to resolve bulk import
    rows and to render exports.  ProjectDirectory is the seam; the default
    implementation reads the local ``projects`` mirror table.

Architecture position:
    Kernel > Services.  Consumed by BookingService, JournalSelector and the
    import reference resolver.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from inventory_kernel.db.text import contains_ci
from inventory_kernel.domain.dtos import ProjectInfo
from inventory_kernel.models.catalog import ProjectRef


@runtime_checkable
class ProjectDirectory(Protocol):
    """Lookup of projects by id and by name fragment."""

    def get(self, project_id: UUID) -> ProjectInfo | None:
        ...

    def search(self, fragment: str) -> list[ProjectInfo]:
        ...


def _to_info(row: ProjectRef) -> ProjectInfo:
    return ProjectInfo(
        id=row.id,
        name=row.name,
        project_number=row.project_number,
        is_active=row.is_active,
    )


class SqlProjectDirectory:
    """ProjectDirectory backed by the ``projects`` table."""

    def __init__(self, session: Session):
        self._session = session

    def get(self, project_id: UUID) -> ProjectInfo | None:
        row = self._session.get(ProjectRef, project_id)
        return _to_info(row) if row is not None else None

    def search(self, fragment: str) -> list[ProjectInfo]:
        """Active projects whose name or number contains ``fragment``."""
        fragment = fragment.strip()
        if not fragment:
            return []
        rows = self._session.execute(
            select(ProjectRef)
            .where(ProjectRef.is_active.is_(True))
            .where(
                or_(
                    contains_ci(ProjectRef.name, fragment),
                    contains_ci(ProjectRef.project_number, fragment),
                )
            )
            .order_by(ProjectRef.name)
        ).scalars()
        return [_to_info(row) for row in rows]

    def register(
        self,
        name: str,
        project_number: str | None = None,
        project_id: UUID | None = None,
    ) -> ProjectInfo:
        """Add a project to the local mirror (seeding and sync)."""
        row = ProjectRef(name=name, project_number=project_number)
        if project_id is not None:
            row.id = project_id
        self._session.add(row)
        self._session.flush()
        return _to_info(row)


class InMemoryProjectDirectory:
    """ProjectDirectory over a fixed list, for callers without a projects table."""

    def __init__(self, projects: list[ProjectInfo] | None = None):
        self._projects = {p.id: p for p in projects or []}

    def add(self, project: ProjectInfo) -> None:
        self._projects[project.id] = project

    def get(self, project_id: UUID) -> ProjectInfo | None:
        return self._projects.get(project_id)

    def search(self, fragment: str) -> list[ProjectInfo]:
        needle = fragment.strip().lower()
        if not needle:
            return []
        return sorted(
            (
                p
                for p in self._projects.values()
                if p.is_active
                and (needle in p.name.lower() or needle in (p.project_number or "").lower())
            ),
            key=lambda p: p.name,
        )
