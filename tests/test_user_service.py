from uuid import uuid4

import bcrypt
import pytest

from app.repositories.memory import InMemoryOrganizationRepository, InMemoryUserRepository
from app.schemas.organization import OrganizationCreate
from app.schemas.user import UserCreate, UserUpdate
from app.services.organization_service import OrganizationService
from app.services.user_service import UserService
from core.exceptions import (
    ConflictException,
    NotFoundException,
    OrganizationNotFoundException,
    PersistenceException,
)

pytestmark = pytest.mark.asyncio


@pytest.fixture
async def organization(organization_service: OrganizationService):
    return await organization_service.create_organization(
        OrganizationCreate(name="Acme Corp", lat=13.7388, lng=100.5322)
    )


def new_user(organization_id: str, email: str = "a@x.com", **fields) -> UserCreate:
    return UserCreate(
        email=email, name=fields.pop("name", "Alice"), organization_id=organization_id, **fields
    )


class TestCreateUser:
    async def test_create_hashes_password(self, user_service: UserService, organization):
        user = await user_service.create_user(
            new_user(organization.id, "Alice@X.com", password="correct-horse")
        )

        assert user.email == "alice@x.com"
        assert user.hashed_password != "correct-horse"
        assert bcrypt.checkpw(b"correct-horse", user.hashed_password.encode())
        assert user.created_at <= user.updated_at

    async def test_create_without_password(self, user_service: UserService, organization):
        user = await user_service.create_user(new_user(organization.id))
        assert user.hashed_password is None
        assert user.research_categories == []
        assert user.is_admin is False

    async def test_missing_organization_writes_nothing(
        self, user_service: UserService, user_repo: InMemoryUserRepository
    ):
        with pytest.raises(OrganizationNotFoundException) as exc_info:
            await user_service.create_user(new_user(str(uuid4())))

        assert exc_info.value.code == 404
        assert user_repo.rows == {}

    async def test_deleted_organization_rejected(
        self,
        user_service: UserService,
        organization_service: OrganizationService,
        organization,
    ):
        await organization_service.delete_organization(organization.id)

        with pytest.raises(OrganizationNotFoundException):
            await user_service.create_user(new_user(organization.id))

    async def test_duplicate_email(self, user_service: UserService, organization):
        await user_service.create_user(new_user(organization.id, "a@x.com"))

        with pytest.raises(ConflictException):
            await user_service.create_user(new_user(organization.id, "A@x.com", name="Other"))


class TestUserQueries:
    async def test_list_with_organization(self, user_service: UserService, organization):
        await user_service.create_user(new_user(organization.id))

        [user] = await user_service.list_users(with_organization=True)
        assert user.organization.id == organization.id
        assert user.organization.name == "Acme Corp"

    async def test_list_by_organization(
        self,
        user_service: UserService,
        organization_service: OrganizationService,
        organization,
    ):
        other = await organization_service.create_organization(OrganizationCreate(name="Globex"))
        first = await user_service.create_user(new_user(organization.id, "one@x.com"))
        second = await user_service.create_user(new_user(organization.id, "two@x.com"))
        await user_service.create_user(new_user(other.id, "three@x.com"))

        users = await user_service.list_users_by_organization(organization.id)
        assert [u.id for u in users] == [second.id, first.id]

    async def test_list_by_deleted_organization(
        self,
        user_service: UserService,
        organization_service: OrganizationService,
        organization,
    ):
        user = await user_service.create_user(new_user(organization.id))
        await organization_service.delete_organization(organization.id)

        with pytest.raises(OrganizationNotFoundException):
            await user_service.list_users_by_organization(organization.id)
        # The user itself survives
        assert (await user_service.get_user(user.id)).id == user.id

    async def test_search(self, user_service: UserService, organization):
        await user_service.create_user(new_user(organization.id, "zed@smith.io", name="Zed"))
        await user_service.create_user(new_user(organization.id, "amy@x.com", name="Amy Smith"))
        await user_service.create_user(new_user(organization.id, "bob@x.com", name="Bob"))

        found = await user_service.search_users("SMITH")
        assert [u.name for u in found] == ["Amy Smith", "Zed"]


class TestUpdateUser:
    async def test_partial_update(self, user_service: UserService, organization):
        user = await user_service.create_user(
            new_user(organization.id, description="Researcher", phone_number="+6612345678")
        )

        updated = await user_service.update_user(
            user.id, UserUpdate(description=None, password="new-password")
        )
        assert updated.description is None
        assert updated.phone_number == "+6612345678"
        assert bcrypt.checkpw(b"new-password", updated.hashed_password.encode())

    async def test_null_required_field_rejected(self):
        with pytest.raises(ValueError):
            UserUpdate(email=None)

    async def test_update_to_deleted_organization_is_stored(
        self,
        user_service: UserService,
        organization_service: OrganizationService,
        organization,
    ):
        other = await organization_service.create_organization(OrganizationCreate(name="Gone"))
        await organization_service.delete_organization(other.id)
        user = await user_service.create_user(new_user(organization.id))

        updated = await user_service.update_user(user.id, UserUpdate(organization_id=other.id))
        assert updated.organization_id == other.id

    async def test_update_deleted_user(self, user_service: UserService, organization):
        user = await user_service.create_user(new_user(organization.id))
        await user_service.delete_user(user.id)

        assert await user_service.update_user(user.id, UserUpdate(name="Back")) is None
        with pytest.raises(NotFoundException):
            await user_service.delete_user(user.id)


class FailingOrganizationRepository(InMemoryOrganizationRepository):
    async def get(self, org_id):
        raise PersistenceException()


class TestStoreFailures:
    async def test_store_error_propagates(self):
        org_repo = FailingOrganizationRepository()
        service = UserService(InMemoryUserRepository(organizations=org_repo), org_repo)

        with pytest.raises(PersistenceException):
            await service.create_user(new_user(str(uuid4())))
