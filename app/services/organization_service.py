"""Organization service: create, read, partial update, soft delete, search."""

from typing import Any, Dict, List, Optional, Sequence

from app.models.organization import Organization
from app.repositories.base import Coordinate, OrganizationRepository
from app.schemas.organization import OrganizationCreate, OrganizationUpdate
from core.exceptions.base import NotFoundException
from core.logging import get_logger

logger = get_logger(__name__)

# Request field -> column
UPDATE_COLUMNS = {
    "name": "name",
    "lat": "latitude",
    "lng": "longitude",
    "address": "address",
    "description": "description",
    "image_urls": "image_urls",
}


class OrganizationService:
    """Service for organization management."""

    def __init__(self, org_repo: OrganizationRepository):
        self.org_repo = org_repo

    async def create_organization(self, data: OrganizationCreate) -> Organization:
        """Persist a new organization from an already validated request."""
        org = Organization(
            name=data.name,
            latitude=data.lat,
            longitude=data.lng,
            address=data.address,
            description=data.description,
            image_urls=list(data.image_urls),
        )
        org = await self.org_repo.add(org)
        logger.info(f"Organization created: {org.id} ({org.name})")
        return org

    async def get_organization(self, org_id: str) -> Optional[Organization]:
        """Live organization or None."""
        return await self.org_repo.get(str(org_id))

    async def list_organizations(self) -> List[Organization]:
        return await self.org_repo.list_all()

    async def get_organizations_by_ids(self, org_ids: Sequence[str]) -> List[Organization]:
        """Batch lookup. Unknown or deleted ids are left out, not reported."""
        wanted = list(dict.fromkeys(str(org_id) for org_id in org_ids))
        orgs = await self.org_repo.get_many(wanted)
        logger.debug(f"Batch lookup: {len(orgs)} of {len(wanted)} organizations found")
        return orgs

    async def get_all_coordinates(self) -> List[Coordinate]:
        return await self.org_repo.list_coordinates()

    async def update_organization(
        self, org_id: str, data: OrganizationUpdate
    ) -> Optional[Organization]:
        """
        Merge the supplied fields into an organization.

        Returns None when there is no live organization with this id.
        Only the supplied columns are written; there is no version check, so
        two concurrent updates of the same field are last-writer-wins.
        """
        org_id = str(org_id)
        existing = await self.org_repo.get(org_id)
        if existing is None:
            return None

        changes = self._changes_from(data)
        if not changes:
            return existing

        if not await self.org_repo.update(org_id, changes):
            # Deleted between the read and the write
            return None

        logger.info(f"Organization updated: {org_id} ({', '.join(sorted(changes))})")
        return await self.org_repo.get(org_id)

    async def delete_organization(self, org_id: str) -> None:
        """Soft delete. Users of the organization are left as they are."""
        org_id = str(org_id)
        if not await self.org_repo.soft_delete(org_id):
            raise NotFoundException(message=f"Organization {org_id} not found")
        logger.info(f"Organization soft-deleted: {org_id}")

    async def search_organizations(self, query: str, limit: int = 0) -> List[Organization]:
        """Case-insensitive name search; limit <= 0 means no cap."""
        return await self.org_repo.search(query, limit)

    @staticmethod
    def _changes_from(data: OrganizationUpdate) -> Dict[str, Any]:
        changes = {
            UPDATE_COLUMNS[field]: value
            for field, value in data.model_dump(exclude_unset=True).items()
        }
        if "image_urls" in changes and changes["image_urls"] is None:
            changes["image_urls"] = []
        return changes
