from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, DateTime, false, func
from sqlalchemy.orm import Mapped, declared_attr, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False
    )

    def stamp_created(self) -> None:
        """Set both timestamps to the same instant before the first insert."""
        now = utcnow()
        self.created_at = now
        self.updated_at = now


class SoftDeleteMixin:
    """Mixin that adds soft delete semantics."""

    @declared_attr.directive
    def is_deleted(cls) -> Mapped[bool]:  # type: ignore[override]
        return mapped_column(
            Boolean,
            default=False,
            server_default=false(),
            nullable=False,
            index=True,
        )

    @declared_attr.directive
    def deleted_at(cls) -> Mapped[Optional[datetime]]:  # type: ignore[override]
        return mapped_column(DateTime(timezone=True), nullable=True)

    @classmethod
    def live(cls):
        """SQL criterion for rows that have not been soft deleted."""
        return cls.is_deleted == False  # noqa: E712

    @staticmethod
    def tombstone() -> Dict[str, Any]:
        """Column values that mark a row as deleted."""
        return {"is_deleted": True, "deleted_at": utcnow()}


__all__ = ["TimestampMixin", "SoftDeleteMixin", "utcnow"]
