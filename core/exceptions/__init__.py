from core.exceptions.base import (
    CustomException,
    BadRequestException,
    NotFoundException,
    OrganizationNotFoundException,
    ConflictException,
    ValidationException,
    PersistenceException,
)

__all__ = [
    "CustomException",
    "BadRequestException",
    "NotFoundException",
    "OrganizationNotFoundException",
    "ConflictException",
    "ValidationException",
    "PersistenceException",
]
