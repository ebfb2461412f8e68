from typing import Any, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from core.config import config


def get_engine_config(database_url: str) -> Dict[str, Any]:
    """Get database engine configuration based on database type.

    Args:
        database_url: Database connection URL

    Returns:
        Dict of engine configuration parameters
    """
    config_dict = {
        "echo": False,  # SQL logging is driven by LOG_LEVEL instead
        "future": True,
    }

    if "postgresql" in database_url:
        config_dict.update({
            "pool_size": config.DATABASE_POOL_SIZE,
            "max_overflow": config.DATABASE_MAX_OVERFLOW,
            "pool_timeout": config.DATABASE_POOL_TIMEOUT,
            "pool_recycle": 3600,  # Recycle connections after 1 hour
            "pool_pre_ping": True,  # Verify connection before use
        })
    elif "sqlite" in database_url:
        config_dict.update({
            "connect_args": {"check_same_thread": False},
            "poolclass": NullPool,  # Disable pooling for SQLite
        })

    return config_dict


def create_engine(database_url: str) -> AsyncEngine:
    """Create an async engine, enabling foreign keys on SQLite."""
    new_engine = create_async_engine(database_url, **get_engine_config(database_url))

    if "sqlite" in database_url:
        @event.listens_for(new_engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the repositories; one session per store call."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine(config.DATABASE_URL)
async_session_factory = create_session_factory(engine)
