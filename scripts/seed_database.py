"""
Database seeding script to populate tables with realistic test data.

Usage:
    python scripts/seed_database.py
"""

import asyncio
import random

from sqlalchemy import delete

from app.models.organization import Organization
from app.models.user import User
from app.repositories.organization_repo import SQLAlchemyOrganizationRepository
from app.repositories.user_repo import SQLAlchemyUserRepository
from app.schemas.organization import OrganizationCreate
from app.schemas.user import UserCreate
from app.services.organization_service import OrganizationService
from app.services.user_service import UserService
from core.db import Base, async_session_factory, engine
from core.logging import get_logger, setup_logging

logger = get_logger(__name__)

ORGANIZATIONS = [
    ("Acme Corp", 13.7388, 100.5322, "999 Rama I Rd, Pathum Wan, Bangkok"),
    ("Globex Research", 18.7883, 98.9853, "Nimmanhaemin Rd, Chiang Mai"),
    ("Initech Labs", 7.8804, 98.3923, "Phuket Town, Phuket"),
    ("Umbrella Institute", None, None, None),
]

RESEARCH_CATEGORIES = ["ai", "biology", "climate", "energy", "materials", "robotics"]

PEOPLE = [
    ("Somchai Jaidee", "somchai"),
    ("Mary Jones", "mary.jones"),
    ("Robert Brown", "robert.brown"),
    ("Jennifer Garcia", "jennifer.garcia"),
    ("Anong Srisuk", "anong"),
    ("Daniel Lee", "daniel.lee"),
    ("Linda Wilson", "linda.wilson"),
    ("Kittipong Boonmee", "kittipong"),
]


class DatabaseSeeder:
    """Database seeding utility."""

    def __init__(self):
        org_repo = SQLAlchemyOrganizationRepository(async_session_factory)
        user_repo = SQLAlchemyUserRepository(async_session_factory)
        self.organization_service = OrganizationService(org_repo)
        self.user_service = UserService(user_repo, org_repo)
        self.organizations = []
        self.users = []

    async def clear_database(self):
        """Create missing tables and remove existing rows, users first."""
        logger.info("Clearing existing data...")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await conn.execute(delete(User))
            await conn.execute(delete(Organization))
        logger.info("Database cleared successfully")

    async def seed_all(self):
        """Seed all tables with test data."""
        logger.info("Starting database seeding...")
        await self.clear_database()
        await self.seed_organizations()
        await self.seed_users()
        logger.info(
            f"Database seeding completed: {len(self.organizations)} organizations, "
            f"{len(self.users)} users"
        )

    async def seed_organizations(self):
        logger.info("Seeding organizations...")
        for name, lat, lng, address in ORGANIZATIONS:
            org = await self.organization_service.create_organization(
                OrganizationCreate(
                    name=name,
                    lat=lat,
                    lng=lng,
                    address=address,
                    description=f"{name} seeded for local development",
                )
            )
            self.organizations.append(org)

    async def seed_users(self):
        logger.info("Seeding users...")
        for index, (name, handle) in enumerate(PEOPLE):
            org = self.organizations[index % len(self.organizations)]
            user = await self.user_service.create_user(
                UserCreate(
                    email=f"{handle}@{org.name.split()[0].lower()}.org",
                    name=name,
                    organization_id=org.id,
                    password="Password123",
                    research_categories=random.sample(RESEARCH_CATEGORIES, 2),
                    is_admin=index == 0,
                )
            )
            self.users.append(user)


async def main():
    setup_logging()
    seeder = DatabaseSeeder()
    try:
        await seeder.seed_all()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
