from core.db.base import Base
from core.db.mixins import TimestampMixin, SoftDeleteMixin, utcnow
from core.db.session import (
    async_session_factory,
    create_engine,
    create_session_factory,
    engine,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "utcnow",
    "async_session_factory",
    "create_engine",
    "create_session_factory",
    "engine",
]
