"""
User repository backed by SQLAlchemy.
"""
from typing import List

from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload

from app.models.user import User
from app.repositories.base import SQLAlchemyRepository, UserRepository


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], UserRepository):
    """Repository for User operations."""

    model = User
    conflict_message = "Email already registered"

    async def list_all(self, with_organization: bool = False) -> List[User]:
        query = (
            select(User)
            .where(User.live())
            .order_by(User.created_at.desc())
        )
        if with_organization:
            query = query.options(selectinload(User.organization))
        return await self._find(query)

    async def list_by_organization(self, org_id: str) -> List[User]:
        query = (
            select(User)
            .where(User.organization_id == org_id, User.live())
            .order_by(User.created_at.desc())
        )
        return await self._find(query)

    async def search(self, query: str, limit: int = 0) -> List[User]:
        statement = (
            select(User)
            .where(
                User.live(),
                or_(
                    User.name.icontains(query, autoescape=True),
                    User.email.icontains(query, autoescape=True),
                ),
            )
            .order_by(User.name.asc())
        )
        return await self._find(statement, limit)
