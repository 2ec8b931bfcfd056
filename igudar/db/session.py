"""
Async engine, session factory and schema bootstrap.

``get_db`` is the FastAPI dependency that hands each request its own
``AsyncSession``; ``create_tables`` is shared by the application lifespan and
the seed script.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from igudar.core.config import settings
from igudar.core.resilience import retry_with_backoff

logger = logging.getLogger(__name__)

if settings.USE_SQLITE:
    from sqlalchemy.pool import StaticPool

    # StaticPool keeps a single connection so every session sees the same
    # in-memory database.
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

else:
    engine = create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        pool_pre_ping=True,
    )

# expire_on_commit=False: attributes stay loaded after commit, since async
# sessions cannot lazy-load on attribute access.
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@retry_with_backoff(max_retries=4, base_delay=2.0, jitter=False)
async def create_tables() -> None:
    """Create any missing tables, retrying while the database comes up."""
    import igudar.db.base  # noqa: F401  (registers table models)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables ready")


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with AsyncSessionLocal() as session:
        yield session
