"""
Portfolio Backend — Database Engine & Session Management
==========================================================

What:  Async SQLAlchemy engine, session factory and declarative base.
How:   `build_engine()` creates an async engine with pooling suited to the
       backend (PostgreSQL via asyncpg in production, SQLite via aiosqlite for
       local runs and tests). The module-level `engine` and
       `async_session_factory` are what the application wires into its
       services; tests build their own with the same helpers.
Who:   Used by the contact-info store, the health check and Alembic.

Connection Pooling Strategy (PostgreSQL):
    pool_size / max_overflow from settings, pool_pre_ping validates
    connections before use, pool_recycle=3600 drops hour-old connections.
    SQLite ignores pool sizing, so those options are only passed for
    server databases.
"""

import logging
from pathlib import Path

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from portfolio.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic reads for
    migrations and `create_schema()` uses for SQLite databases.
    """
    pass


def _ensure_sqlite_directory(database_url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    sqlite_path = database_url.split(":///", 1)[-1]
    if sqlite_path in {"", ":memory:"}:
        return
    parent = Path(sqlite_path).parent
    if str(parent) not in {"", "."}:
        parent.mkdir(parents=True, exist_ok=True)


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Create an async engine for the given URL.

    Pool options only apply to server databases; passing max_overflow to a
    SQLite engine raises a TypeError at pool construction.
    """
    if database_url.startswith("sqlite"):
        _ensure_sqlite_directory(database_url)
        logger.warning(
            "SQLite detected: writes from multiple processes rely on "
            "optimistic version checks only. Use PostgreSQL in production."
        )
        return create_async_engine(database_url, echo=echo)

    return create_async_engine(
        database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        echo=echo,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory with expire_on_commit=False.

    Store results are converted to Pydantic models after the transaction
    commits; expiring attributes on commit would make those reads hit a
    closed session.
    """
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


# ── Application Engine ────────────────────────────────────────────────────
engine = build_engine(settings.database_url, echo=settings.log_level == "DEBUG")
async_session_factory = build_session_factory(engine)


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_schema(bind: AsyncEngine = engine) -> None:
    """
    Create all tables directly from model metadata.

    Used for SQLite databases (local runs, tests). Server databases are
    migrated with Alembic instead.
    """
    # Import models so they register with Base.metadata
    from portfolio.models import contact_info  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close every pooled connection. Called during application shutdown."""
    await engine.dispose()
