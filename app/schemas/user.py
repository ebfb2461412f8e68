from typing import List, Optional
from uuid import UUID

from pydantic import EmailStr, Field, model_validator

from app.models.user import User
from app.schemas.base import (
    BaseSchema,
    NameStr,
    Password,
    PhoneNumber,
    TagSet,
    UrlStr,
    UTCDateTime,
    not_null,
)
from app.schemas.organization import OrganizationBrief


class UserCreate(BaseSchema):
    """Schema for creating a user inside an existing organization."""

    email: EmailStr
    name: NameStr
    organization_id: UUID
    password: Optional[Password] = None
    phone_number: Optional[PhoneNumber] = None
    social_media: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[UrlStr] = None
    research_categories: TagSet = Field(default_factory=list)
    is_admin: bool = False


class UserUpdate(BaseSchema):
    """
    Schema for a partial user update.

    Omitted fields are left untouched; an explicit null clears optional
    profile fields. email, name, organization_id and is_admin cannot be null.
    """

    email: Optional[EmailStr] = None
    name: Optional[NameStr] = None
    organization_id: Optional[UUID] = None
    password: Optional[Password] = None
    phone_number: Optional[PhoneNumber] = None
    social_media: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[UrlStr] = None
    research_categories: Optional[TagSet] = None
    is_admin: Optional[bool] = None

    @model_validator(mode="after")
    def validate_required_not_null(self) -> "UserUpdate":
        field = not_null(
            self.model_fields_set,
            self.__dict__,
            ("email", "name", "organization_id", "password", "is_admin"),
        )
        if field:
            raise ValueError(f"{field} cannot be null")
        return self


class UserResponse(BaseSchema):
    """Schema for user response. Never carries the password hash."""

    id: str
    email: str
    name: str
    organization_id: str
    is_admin: bool
    phone_number: Optional[str] = None
    social_media: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    research_categories: List[str] = Field(default_factory=list)
    created_at: UTCDateTime
    updated_at: UTCDateTime


class UserWithOrganizationResponse(UserResponse):
    """User response with the owning organization eager-loaded."""

    organization: Optional[OrganizationBrief] = None

    @classmethod
    def from_model(
        cls, user: User, include_organization: bool = False
    ) -> "UserWithOrganizationResponse":
        # Only touch the relationship when it was eager-loaded
        data = UserResponse.model_validate(user).model_dump()
        if include_organization and user.organization is not None:
            data["organization"] = OrganizationBrief.model_validate(user.organization)
        return cls(**data)
