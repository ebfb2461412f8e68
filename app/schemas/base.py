"""Shared schema base and field rules used by request schemas."""

from datetime import datetime, timezone
from typing import Annotated, List, Optional

from pydantic import (
    AfterValidator,
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
)

_http_url = TypeAdapter(AnyHttpUrl)


def _check_url(value: str) -> str:
    """Reject anything that is not an absolute http(s) URL; keep the original text."""
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError(f"'{value}' is not a valid URL")
    return value


def _unique_in_order(values: List[str]) -> List[str]:
    unique: List[str] = []
    for value in values:
        if value not in unique:
            unique.append(value)
    return unique


def _as_utc(value: datetime) -> datetime:
    """Stored timestamps are UTC; SQLite returns them without an offset."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# Field rules. Each request schema is an explicit table of these.
NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
Latitude = Annotated[float, Field(ge=-90, le=90)]
Longitude = Annotated[float, Field(ge=-180, le=180)]
UrlStr = Annotated[str, StringConstraints(strip_whitespace=True), AfterValidator(_check_url)]
PhoneNumber = Annotated[str, StringConstraints(pattern=r"^\+[1-9]\d{1,14}$")]
Password = Annotated[str, StringConstraints(min_length=8, max_length=72)]
Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
TagSet = Annotated[List[Tag], AfterValidator(_unique_in_order)]
UTCDateTime = Annotated[datetime, AfterValidator(_as_utc)]


def not_null(fields_set: set, values: dict, names: tuple) -> Optional[str]:
    """Return the first field explicitly sent as null that must not be."""
    for name in names:
        if name in fields_set and values.get(name) is None:
            return name
    return None


class BaseSchema(BaseModel):
    """Base schema; reads attributes straight off ORM objects."""

    model_config = ConfigDict(from_attributes=True)
