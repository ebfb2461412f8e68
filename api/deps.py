from fastapi import Request

from app.services.organization_service import OrganizationService
from app.services.user_service import UserService


def get_organization_service(request: Request) -> OrganizationService:
    """Organization service built by the app factory."""
    return request.app.state.organization_service


def get_user_service(request: Request) -> UserService:
    """User service built by the app factory."""
    return request.app.state.user_service
