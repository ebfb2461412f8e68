"""
In-memory repositories.

Same contracts as the SQLAlchemy repositories, kept in process memory. They
mimic the store: generated ids and timestamps, soft-delete tombstones,
unique email, affected-row counts. Foreign keys are not enforced.
"""
import copy
import itertools
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Type, TypeVar
from uuid import uuid4

from app.models.organization import Organization
from app.models.user import User
from app.repositories.base import Coordinate, OrganizationRepository, UserRepository
from core.db import Base, utcnow
from core.exceptions.base import ConflictException

ModelType = TypeVar("ModelType", bound=Base)


class InMemoryRepository(Generic[ModelType]):
    """Row storage shared by the in-memory repositories."""

    model: Type[ModelType]
    defaults: Dict[str, Callable[[], Any]] = {}
    unique_fields: tuple = ()
    conflict_message: str = "Resource already exists"

    def __init__(self):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self._sequence = itertools.count()

    @property
    def columns(self) -> List[str]:
        return [column.key for column in self.model.__table__.columns]

    def materialize(self, row: Dict[str, Any]) -> ModelType:
        values = {key: value for key, value in row.items() if not key.startswith("_")}
        return self.model(**copy.deepcopy(values))

    def live_rows(self) -> List[Dict[str, Any]]:
        return [row for row in self.rows.values() if not row["is_deleted"]]

    def newest_first(self, rows: List[Dict[str, Any]]) -> List[ModelType]:
        rows = sorted(rows, key=lambda r: (r["created_at"], r["_seq"]), reverse=True)
        return [self.materialize(row) for row in rows]

    def by_name(self, rows: List[Dict[str, Any]], limit: int) -> List[ModelType]:
        rows = sorted(rows, key=lambda r: r["name"])
        if limit > 0:
            rows = rows[:limit]
        return [self.materialize(row) for row in rows]

    def check_unique(self, values: Dict[str, Any], own_id: Optional[str] = None) -> None:
        for field in self.unique_fields:
            if field not in values:
                continue
            for row_id, row in self.rows.items():
                if row_id != own_id and row[field] == values[field]:
                    raise ConflictException(message=self.conflict_message)

    async def add(self, entity: ModelType) -> ModelType:
        row = {column: getattr(entity, column, None) for column in self.columns}
        for column, factory in self.defaults.items():
            if row[column] is None:
                row[column] = factory()
        self.check_unique(row)

        now = utcnow()
        row.update(
            id=row["id"] or str(uuid4()),
            created_at=now,
            updated_at=now,
            is_deleted=False,
            deleted_at=None,
            _seq=next(self._sequence),
        )
        self.rows[row["id"]] = copy.deepcopy(row)
        return self.materialize(row)

    async def get(self, entity_id: str) -> Optional[ModelType]:
        row = self.rows.get(entity_id)
        if row is None or row["is_deleted"]:
            return None
        return self.materialize(row)

    async def update(self, entity_id: str, changes: Dict[str, Any]) -> int:
        row = self.rows.get(entity_id)
        if row is None or row["is_deleted"]:
            return 0
        self.check_unique(changes, own_id=entity_id)
        row.update(copy.deepcopy(changes), updated_at=utcnow())
        return 1

    async def soft_delete(self, entity_id: str) -> int:
        row = self.rows.get(entity_id)
        if row is None or row["is_deleted"]:
            return 0
        row.update(self.model.tombstone())
        return 1


class InMemoryOrganizationRepository(
    InMemoryRepository[Organization], OrganizationRepository
):
    model = Organization
    defaults = {"image_urls": list}

    async def get_many(self, org_ids: Sequence[str]) -> List[Organization]:
        wanted = set(org_ids)
        return self.newest_first([r for r in self.live_rows() if r["id"] in wanted])

    async def list_all(self) -> List[Organization]:
        return self.newest_first(self.live_rows())

    async def list_coordinates(self) -> List[Coordinate]:
        orgs = self.newest_first(self.live_rows())
        return [
            (org.id, org.latitude, org.longitude) for org in orgs if org.has_coordinate
        ]

    async def search(self, query: str, limit: int = 0) -> List[Organization]:
        needle = query.lower()
        return self.by_name(
            [r for r in self.live_rows() if needle in r["name"].lower()], limit
        )


class InMemoryUserRepository(InMemoryRepository[User], UserRepository):
    model = User
    defaults = {"research_categories": list, "is_admin": lambda: False}
    unique_fields = ("email",)
    conflict_message = "Email already registered"

    def __init__(self, organizations: Optional[InMemoryOrganizationRepository] = None):
        super().__init__()
        self.organizations = organizations

    async def list_all(self, with_organization: bool = False) -> List[User]:
        users = self.newest_first(self.live_rows())
        if with_organization and self.organizations is not None:
            for user in users:
                # Join on the foreign key, tombstoned parents included
                org_row = self.organizations.rows.get(user.organization_id)
                if org_row is not None:
                    user.organization = self.organizations.materialize(org_row)
        return users

    async def list_by_organization(self, org_id: str) -> List[User]:
        return self.newest_first(
            [r for r in self.live_rows() if r["organization_id"] == org_id]
        )

    async def search(self, query: str, limit: int = 0) -> List[User]:
        needle = query.lower()
        return self.by_name(
            [
                r for r in self.live_rows()
                if needle in r["name"].lower() or needle in r["email"].lower()
            ],
            limit,
        )
