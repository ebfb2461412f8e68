"""Organization API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from api.deps import get_organization_service
from app.schemas.organization import (
    OrganizationBatchRequest,
    OrganizationCoordinate,
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
)
from app.services.organization_service import OrganizationService
from core.exceptions.base import BadRequestException, NotFoundException
from core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/organizations", tags=["Organizations"])


@router.get("/", response_model=list[OrganizationResponse])
async def list_organizations(
    service: OrganizationService = Depends(get_organization_service),
) -> list[OrganizationResponse]:
    """List all organizations, newest first."""
    orgs = await service.list_organizations()
    return [OrganizationResponse.from_model(o) for o in orgs]


@router.post(
    "/",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_organization(
    data: OrganizationCreate,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Create a new organization."""
    logger.info(f"Creating organization: {data.name}")
    org = await service.create_organization(data)
    return OrganizationResponse.from_model(org)


@router.get("/search", response_model=list[OrganizationResponse])
async def search_organizations(
    q: Optional[str] = Query(None, description="Substring of the name, case-insensitive"),
    limit: int = Query(0, description="Maximum results; 0 or less means no limit"),
    service: OrganizationService = Depends(get_organization_service),
) -> list[OrganizationResponse]:
    """Search organizations by name."""
    if not q:
        raise BadRequestException(message="query parameter 'q' is required")

    orgs = await service.search_organizations(q, limit)
    return [OrganizationResponse.from_model(o) for o in orgs]


@router.get("/coordinates", response_model=list[OrganizationCoordinate])
async def get_all_coordinates(
    service: OrganizationService = Depends(get_organization_service),
) -> list[OrganizationCoordinate]:
    """ID and position of every organization that has one."""
    coordinates = await service.get_all_coordinates()
    return [
        OrganizationCoordinate(id=org_id, lat=lat, lng=lng)
        for org_id, lat, lng in coordinates
    ]


@router.post("/batch", response_model=list[OrganizationResponse])
async def get_organizations_by_ids(
    data: OrganizationBatchRequest,
    service: OrganizationService = Depends(get_organization_service),
) -> list[OrganizationResponse]:
    """
    Get several organizations in one request.

    Unknown or deleted ids are silently left out of the result.
    """
    orgs = await service.get_organizations_by_ids([str(i) for i in data.ids])
    return [OrganizationResponse.from_model(o) for o in orgs]


@router.get("/{org_id}", response_model=OrganizationResponse)
async def get_organization(
    org_id: UUID,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Get organization by ID."""
    org = await service.get_organization(str(org_id))

    if not org:
        raise NotFoundException(message=f"Organization {org_id} not found")

    return OrganizationResponse.from_model(org)


@router.patch("/{org_id}", response_model=OrganizationResponse)
async def update_organization(
    org_id: UUID,
    data: OrganizationUpdate,
    service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    """Partially update an organization; omitted fields keep their values."""
    logger.info(f"Updating organization {org_id}")

    org = await service.update_organization(str(org_id), data)
    if not org:
        raise NotFoundException(message=f"Organization {org_id} not found")

    return OrganizationResponse.from_model(org)


@router.delete(
    "/{org_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_organization(
    org_id: UUID,
    service: OrganizationService = Depends(get_organization_service),
) -> Response:
    """Soft delete an organization. Its users are not deleted."""
    logger.info(f"Deleting organization {org_id}")
    await service.delete_organization(str(org_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
