import asyncio
from typing import Optional
from uuid import uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.repositories.base import is_unique_violation
from app.repositories.organization_repo import SQLAlchemyOrganizationRepository
from app.schemas.organization import OrganizationCreate, OrganizationUpdate
from app.services.organization_service import OrganizationService
from core.db import create_engine, create_session_factory
from core.exceptions import NotFoundException, PersistenceException

pytestmark = pytest.mark.asyncio


class TestOrganizationService:
    """Organization service over in-memory storage."""

    async def test_create_sets_identity_and_timestamps(
        self, organization_service: OrganizationService
    ):
        first = await organization_service.create_organization(
            OrganizationCreate(name="Acme Corp", lat=13.7388, lng=100.5322)
        )
        second = await organization_service.create_organization(
            OrganizationCreate(name="Acme Corp")
        )

        assert first.id != second.id
        assert first.created_at <= first.updated_at
        assert first.has_coordinate
        assert not second.has_coordinate
        assert second.image_urls == []

    async def test_coordinate_is_all_or_nothing(self):
        with pytest.raises(ValidationError):
            OrganizationCreate(name="Acme", lng=100.5)
        with pytest.raises(ValidationError):
            OrganizationUpdate(lat=1.0)
        with pytest.raises(ValidationError):
            OrganizationUpdate(lat=1.0, lng=None)

    async def test_batch_lookup_dedupes(self, organization_service: OrganizationService):
        org = await organization_service.create_organization(OrganizationCreate(name="Acme"))

        found = await organization_service.get_organizations_by_ids(
            [org.id, org.id, str(uuid4())]
        )
        assert [o.id for o in found] == [org.id]

    async def test_batch_lookup_empty(self, organization_service: OrganizationService):
        assert await organization_service.get_organizations_by_ids([]) == []

    async def test_update_writes_only_supplied_fields(
        self, organization_service: OrganizationService
    ):
        org = await organization_service.create_organization(
            OrganizationCreate(name="Acme", address="Bangkok", lat=1.0, lng=2.0)
        )

        updated = await organization_service.update_organization(
            org.id, OrganizationUpdate(image_urls=None, description="Rockets")
        )
        assert updated.description == "Rockets"
        assert updated.image_urls == []
        assert updated.address == "Bangkok"
        assert (updated.latitude, updated.longitude) == (1.0, 2.0)
        assert updated.updated_at >= org.updated_at

    async def test_update_missing_returns_none(self, organization_service: OrganizationService):
        assert await organization_service.update_organization(
            str(uuid4()), OrganizationUpdate(name="Ghost")
        ) is None

    async def test_concurrent_updates_last_writer_wins(
        self, organization_service: OrganizationService
    ):
        org = await organization_service.create_organization(OrganizationCreate(name="Acme"))

        results = await asyncio.gather(
            organization_service.update_organization(org.id, OrganizationUpdate(name="Alpha")),
            organization_service.update_organization(org.id, OrganizationUpdate(name="Beta")),
        )
        assert all(result is not None for result in results)

        final = await organization_service.get_organization(org.id)
        assert final.name in {"Alpha", "Beta"}

    async def test_delete_then_reads_skip(self, organization_service: OrganizationService):
        org = await organization_service.create_organization(
            OrganizationCreate(name="Acme", lat=1.0, lng=2.0)
        )
        await organization_service.delete_organization(org.id)

        assert await organization_service.get_organization(org.id) is None
        assert await organization_service.list_organizations() == []
        assert await organization_service.get_all_coordinates() == []
        assert await organization_service.search_organizations("acme") == []

        with pytest.raises(NotFoundException):
            await organization_service.delete_organization(org.id)

    async def test_search_limit(self, organization_service: OrganizationService):
        for name in ("Lab C", "Lab A", "Lab B"):
            await organization_service.create_organization(OrganizationCreate(name=name))

        found = await organization_service.search_organizations("LAB", limit=2)
        assert [o.name for o in found] == ["Lab A", "Lab B"]

        everything = await organization_service.search_organizations("lab", limit=0)
        assert len(everything) == 3


class TestStoreFailures:
    """Driver errors surface as PersistenceException."""

    async def test_missing_table_is_persistence_error(self):
        # Every connection to an in-memory SQLite database starts empty
        engine = create_engine("sqlite+aiosqlite:///:memory:")
        service = OrganizationService(
            SQLAlchemyOrganizationRepository(create_session_factory(engine))
        )
        try:
            with pytest.raises(PersistenceException):
                await service.list_organizations()
        finally:
            await engine.dispose()


class TestCoordinates:
    async def test_only_positioned_live_organizations(
        self, organization_service: OrganizationService
    ):
        placed = await organization_service.create_organization(
            OrganizationCreate(name="Acme", lat=13.7388, lng=100.5322)
        )
        await organization_service.create_organization(OrganizationCreate(name="Nowhere"))
        gone = await organization_service.create_organization(
            OrganizationCreate(name="Gone", lat=1.0, lng=2.0)
        )
        await organization_service.delete_organization(gone.id)

        assert await organization_service.get_all_coordinates() == [
            (placed.id, 13.7388, 100.5322)
        ]


class DriverError(Exception):
    def __init__(self, message: str, sqlstate: Optional[str] = None):
        super().__init__(message)
        self.sqlstate = sqlstate


class TestUniqueViolation:
    """Classification of IntegrityError by driver."""

    async def test_sqlstate_unique(self):
        orig = DriverError("duplicate key value violates constraint", "23505")
        assert is_unique_violation(IntegrityError("INSERT", {}, orig))

    async def test_sqlstate_wins_over_message(self):
        # Foreign key failure whose text happens to mention a unique index
        orig = DriverError("insert violates fk on unique index parent", "23503")
        assert not is_unique_violation(IntegrityError("INSERT", {}, orig))

    async def test_sqlite_message_fallback(self):
        unique = Exception("UNIQUE constraint failed: users.email")
        foreign_key = Exception("FOREIGN KEY constraint failed")
        assert is_unique_violation(IntegrityError("INSERT", {}, unique))
        assert not is_unique_violation(IntegrityError("INSERT", {}, foreign_key))
