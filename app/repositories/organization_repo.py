"""
Organization repository backed by SQLAlchemy.
"""
from typing import List, Sequence

from sqlalchemy import select

from app.models.organization import Organization
from app.repositories.base import (
    Coordinate,
    OrganizationRepository,
    SQLAlchemyRepository,
)


class SQLAlchemyOrganizationRepository(
    SQLAlchemyRepository[Organization], OrganizationRepository
):
    """Repository for Organization operations."""

    model = Organization
    conflict_message = "Organization already exists"

    async def get_many(self, org_ids: Sequence[str]) -> List[Organization]:
        if not org_ids:
            return []
        query = (
            select(Organization)
            .where(Organization.id.in_(list(org_ids)), Organization.live())
            .order_by(Organization.created_at.desc())
        )
        return await self._find(query)

    async def list_coordinates(self) -> List[Coordinate]:
        query = (
            select(Organization.id, Organization.latitude, Organization.longitude)
            .where(
                Organization.live(),
                Organization.latitude.is_not(None),
                Organization.longitude.is_not(None),
            )
            .order_by(Organization.created_at.desc())
        )
        async with self.session() as session:
            result = await session.execute(query)
            return [(row.id, row.latitude, row.longitude) for row in result]

    async def search(self, query: str, limit: int = 0) -> List[Organization]:
        statement = (
            select(Organization)
            .where(
                Organization.live(),
                Organization.name.icontains(query, autoescape=True),
            )
            .order_by(Organization.name.asc())
        )
        return await self._find(statement, limit)
