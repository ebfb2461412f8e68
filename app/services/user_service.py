"""
User service.

Every user must point at a live organization when it is created, and
organization-scoped listings require the organization to be live.
"""
import asyncio
from typing import Any, Dict, List, Optional

from app.models.user import User
from app.repositories.base import OrganizationRepository, UserRepository
from app.schemas.user import UserCreate, UserUpdate
from app.utils.security import hash_password
from core.exceptions.base import NotFoundException, OrganizationNotFoundException
from core.logging import get_logger

logger = get_logger(__name__)


class UserService:
    """Service for user operations."""

    def __init__(self, user_repo: UserRepository, org_repo: OrganizationRepository):
        self.user_repo = user_repo
        self.org_repo = org_repo

    async def _require_organization(self, org_id: str) -> None:
        if await self.org_repo.get(org_id) is None:
            logger.warning(f"Organization {org_id} not found")
            raise OrganizationNotFoundException(
                message=f"Organization {org_id} not found",
                data={"organization_id": org_id},
            )

    async def create_user(self, data: UserCreate) -> User:
        """
        Create a user.

        The organization is checked before anything is written.

        Raises:
            OrganizationNotFoundException: organization missing or deleted
            ConflictException: email already registered
        """
        org_id = str(data.organization_id)
        await self._require_organization(org_id)

        hashed_password = None
        if data.password:
            hashed_password = await asyncio.to_thread(hash_password, data.password)

        user = User(
            email=User.normalize_email(data.email),
            name=data.name,
            organization_id=org_id,
            hashed_password=hashed_password,
            phone_number=data.phone_number,
            social_media=data.social_media,
            description=data.description,
            avatar_url=data.avatar_url,
            research_categories=list(data.research_categories),
            is_admin=data.is_admin,
        )
        user = await self.user_repo.add(user)
        logger.info(f"User created: {user.id} (organization: {org_id})")
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return await self.user_repo.get(str(user_id))

    async def list_users(self, with_organization: bool = False) -> List[User]:
        return await self.user_repo.list_all(with_organization=with_organization)

    async def list_users_by_organization(self, org_id: str) -> List[User]:
        org_id = str(org_id)
        await self._require_organization(org_id)
        return await self.user_repo.list_by_organization(org_id)

    async def update_user(self, user_id: str, data: UserUpdate) -> Optional[User]:
        """
        Merge the supplied fields into a user.

        Returns None when there is no live user with this id. A new
        organization_id is stored as given; it is not checked against live
        organizations.
        """
        user_id = str(user_id)
        existing = await self.user_repo.get(user_id)
        if existing is None:
            return None

        changes = await self._changes_from(data)
        if not changes:
            return existing

        if not await self.user_repo.update(user_id, changes):
            return None

        logger.info(f"User updated: {user_id} ({', '.join(sorted(changes))})")
        return await self.user_repo.get(user_id)

    async def delete_user(self, user_id: str) -> None:
        user_id = str(user_id)
        if not await self.user_repo.soft_delete(user_id):
            raise NotFoundException(message=f"User {user_id} not found")
        logger.info(f"User soft-deleted: {user_id}")

    async def search_users(self, query: str, limit: int = 0) -> List[User]:
        """Case-insensitive search over name and email; limit <= 0 means no cap."""
        return await self.user_repo.search(query, limit)

    @staticmethod
    async def _changes_from(data: UserUpdate) -> Dict[str, Any]:
        changes = data.model_dump(exclude_unset=True)

        password = changes.pop("password", None)
        if password:
            changes["hashed_password"] = await asyncio.to_thread(hash_password, password)
        if "email" in changes:
            changes["email"] = User.normalize_email(changes["email"])
        if "organization_id" in changes:
            changes["organization_id"] = str(changes["organization_id"])
        if "research_categories" in changes and changes["research_categories"] is None:
            changes["research_categories"] = []
        return changes
