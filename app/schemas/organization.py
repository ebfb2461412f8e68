"""Organization request and response schemas."""

from typing import List, Optional
from uuid import UUID

from pydantic import Field, model_validator

from app.models.organization import Organization
from app.schemas.base import (
    BaseSchema,
    Latitude,
    Longitude,
    NameStr,
    UrlStr,
    UTCDateTime,
    not_null,
)


class OrganizationCreate(BaseSchema):
    """Create a new organization."""

    name: NameStr
    lat: Optional[Latitude] = None
    lng: Optional[Longitude] = None
    address: Optional[str] = None
    description: Optional[str] = None
    image_urls: List[UrlStr] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_coordinate(self) -> "OrganizationCreate":
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must be supplied together")
        return self


class OrganizationUpdate(BaseSchema):
    """
    Partial update of an organization.

    Omitted fields are left untouched. An explicit null clears address,
    description, or (with both lat and lng null) the coordinate; a null
    image_urls resets the list.
    """

    name: Optional[NameStr] = None
    lat: Optional[Latitude] = None
    lng: Optional[Longitude] = None
    address: Optional[str] = None
    description: Optional[str] = None
    image_urls: Optional[List[UrlStr]] = None

    @model_validator(mode="after")
    def validate_fields(self) -> "OrganizationUpdate":
        sent = self.model_fields_set
        if ("lat" in sent) != ("lng" in sent):
            raise ValueError("lat and lng must be supplied together")
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must both be set or both be null")
        field = not_null(sent, {"name": self.name}, ("name",))
        if field:
            raise ValueError(f"{field} cannot be null")
        return self


class OrganizationBatchRequest(BaseSchema):
    """Look up several organizations at once."""

    ids: List[UUID] = Field(..., min_length=1)


class OrganizationResponse(BaseSchema):
    """Organization response."""

    id: str
    name: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    address: Optional[str] = None
    description: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    created_at: UTCDateTime
    updated_at: UTCDateTime

    @classmethod
    def from_model(cls, org: Organization) -> "OrganizationResponse":
        return cls(
            id=org.id,
            name=org.name,
            lat=org.latitude,
            lng=org.longitude,
            address=org.address,
            description=org.description,
            image_urls=list(org.image_urls or []),
            created_at=org.created_at,
            updated_at=org.updated_at,
        )


class OrganizationBrief(BaseSchema):
    """Organization summary embedded in user listings."""

    id: str
    name: str


class OrganizationCoordinate(BaseSchema):
    """Position of a single organization."""

    id: str
    lat: float
    lng: float
