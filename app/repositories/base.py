"""
Repository contracts and the shared SQLAlchemy implementation.

Every store call runs in its own session taken from the injected session
factory, so connections go back to the pool on success, error and
cancellation alike.
"""
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import (
    Any,
    AsyncIterator,
    Dict,
    Generic,
    List,
    Optional,
    Sequence,
    Tuple,
    Type,
    TypeVar,
)

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.organization import Organization
from app.models.user import User
from core.db import Base, utcnow
from core.exceptions.base import ConflictException, PersistenceException
from core.logging import get_logger

logger = get_logger(__name__)

ModelType = TypeVar("ModelType", bound=Base)

Coordinate = Tuple[str, float, float]


class OrganizationRepository(ABC):
    """Persistence operations for organizations. Reads only see live rows."""

    @abstractmethod
    async def add(self, org: Organization) -> Organization:
        """Insert and return the stored organization with id and timestamps."""

    @abstractmethod
    async def get(self, org_id: str) -> Optional[Organization]:
        """Return the live organization, or None."""

    @abstractmethod
    async def get_many(self, org_ids: Sequence[str]) -> List[Organization]:
        """Live organizations among org_ids, newest first; unknown ids are skipped."""

    @abstractmethod
    async def list_all(self) -> List[Organization]:
        """All live organizations, newest first."""

    @abstractmethod
    async def list_coordinates(self) -> List[Coordinate]:
        """(id, latitude, longitude) of live organizations that have a position."""

    @abstractmethod
    async def search(self, query: str, limit: int = 0) -> List[Organization]:
        """Case-insensitive substring match on name, ordered by name."""

    @abstractmethod
    async def update(self, org_id: str, changes: Dict[str, Any]) -> int:
        """Write only the given columns; returns the number of rows affected."""

    @abstractmethod
    async def soft_delete(self, org_id: str) -> int:
        """Tombstone a live row; returns the number of rows affected."""


class UserRepository(ABC):
    """Persistence operations for users. Reads only see live rows."""

    @abstractmethod
    async def add(self, user: User) -> User:
        """Insert and return the stored user. Duplicate email raises ConflictException."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[User]:
        """Return the live user, or None."""

    @abstractmethod
    async def list_all(self, with_organization: bool = False) -> List[User]:
        """All live users, newest first, optionally with organization loaded."""

    @abstractmethod
    async def list_by_organization(self, org_id: str) -> List[User]:
        """Live users of one organization, newest first."""

    @abstractmethod
    async def search(self, query: str, limit: int = 0) -> List[User]:
        """Case-insensitive substring match on name or email, ordered by name."""

    @abstractmethod
    async def update(self, user_id: str, changes: Dict[str, Any]) -> int:
        """Write only the given columns; returns the number of rows affected."""

    @abstractmethod
    async def soft_delete(self, user_id: str) -> int:
        """Tombstone a live row; returns the number of rows affected."""


UNIQUE_VIOLATION_SQLSTATE = "23505"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports a unique constraint failure."""
    # asyncpg carries the SQLSTATE; SQLite only has the message text
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    if sqlstate is not None:
        return sqlstate == UNIQUE_VIOLATION_SQLSTATE
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate" in message


class SQLAlchemyRepository(Generic[ModelType]):
    """
    Generic CRUD over a soft-deletable model.
    Subclasses set `model` and `conflict_message`.
    """

    model: Type[ModelType]
    conflict_message: str = "Resource already exists"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Scoped session that maps driver errors onto the service error types."""
        async with self.session_factory() as session:
            try:
                yield session
            except IntegrityError as exc:
                await session.rollback()
                if is_unique_violation(exc):
                    logger.warning(f"{self.model.__name__} conflict: {exc.orig}")
                    raise ConflictException(message=self.conflict_message) from exc
                logger.error(f"{self.model.__name__} integrity error: {exc.orig}")
                raise PersistenceException() from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                logger.error(f"{self.model.__name__} store error: {exc}")
                raise PersistenceException() from exc

    async def add(self, entity: ModelType) -> ModelType:
        entity.stamp_created()
        async with self.session() as session:
            session.add(entity)
            await session.commit()
            await session.refresh(entity)
        return entity

    async def get(self, entity_id: str) -> Optional[ModelType]:
        query = select(self.model).where(
            self.model.id == entity_id, self.model.live()
        )
        async with self.session() as session:
            result = await session.execute(query)
            return result.scalars().first()

    async def list_all(self) -> List[ModelType]:
        query = (
            select(self.model)
            .where(self.model.live())
            .order_by(self.model.created_at.desc())
        )
        async with self.session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def update(self, entity_id: str, changes: Dict[str, Any]) -> int:
        values = dict(changes, updated_at=utcnow())
        return await self._update_live(entity_id, values)

    async def soft_delete(self, entity_id: str) -> int:
        return await self._update_live(entity_id, self.model.tombstone())

    async def _update_live(self, entity_id: str, values: Dict[str, Any]) -> int:
        statement = (
            update(self.model)
            .where(self.model.id == entity_id, self.model.live())
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self.session() as session:
            result = await session.execute(statement)
            await session.commit()
            return result.rowcount

    async def _find(self, query, limit: int = 0) -> List[ModelType]:
        if limit > 0:
            query = query.limit(limit)
        async with self.session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())
