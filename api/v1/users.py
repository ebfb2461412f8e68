from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from api.deps import get_user_service
from app.schemas.user import (
    UserCreate,
    UserResponse,
    UserUpdate,
    UserWithOrganizationResponse,
)
from app.services.user_service import UserService
from core.exceptions.base import BadRequestException, NotFoundException
from core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/", response_model=list[UserWithOrganizationResponse])
async def list_users(
    include_organization: bool = Query(
        False, description="Embed the owning organization in each user"
    ),
    service: UserService = Depends(get_user_service),
) -> list[UserWithOrganizationResponse]:
    """
    List all users, newest first.

    `organization` is only filled in when include_organization is true.
    """
    users = await service.list_users(with_organization=include_organization)
    return [
        UserWithOrganizationResponse.from_model(u, include_organization)
        for u in users
    ]


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """
    Create a new user.

    The referenced organization must exist and not be deleted.
    """
    logger.info(f"Create user request: {data.email} (organization: {data.organization_id})")
    user = await service.create_user(data)
    return UserResponse.model_validate(user)


@router.get("/search", response_model=list[UserResponse])
async def search_users(
    q: Optional[str] = Query(None, description="Substring of name or email, case-insensitive"),
    limit: int = Query(0, description="Maximum results; 0 or less means no limit"),
    service: UserService = Depends(get_user_service),
) -> list[UserResponse]:
    """Search users by name or email."""
    if not q:
        raise BadRequestException(message="query parameter 'q' is required")

    users = await service.search_users(q, limit)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/organization/{org_id}", response_model=list[UserResponse])
async def list_users_by_organization(
    org_id: UUID,
    service: UserService = Depends(get_user_service),
) -> list[UserResponse]:
    """List the users of one organization, newest first."""
    users = await service.list_users_by_organization(str(org_id))
    return [UserResponse.model_validate(u) for u in users]


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Get user by ID."""
    user = await service.get_user(str(user_id))
    if not user:
        raise NotFoundException(message=f"User {user_id} not found")

    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: UUID,
    data: UserUpdate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Partially update a user; omitted fields keep their values."""
    logger.info(f"Update user request: {user_id}")

    user = await service.update_user(str(user_id), data)
    if not user:
        raise NotFoundException(message=f"User {user_id} not found")

    return UserResponse.model_validate(user)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_user(
    user_id: UUID,
    service: UserService = Depends(get_user_service),
) -> Response:
    """Soft delete a user."""
    logger.info(f"Delete user request: {user_id}")
    await service.delete_user(str(user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
