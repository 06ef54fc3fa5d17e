from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from guardpost.core.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # aiosqlite runs the connection in a worker thread
        return {"connect_args": {"check_same_thread": False}}
    # Postgres connections may be dropped by the host between requests
    return {"pool_pre_ping": True}


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG and settings.LOG_LEVEL.upper() == "DEBUG",
    **_engine_options(settings.DATABASE_URL),
)

# Objects stay readable after commit; handlers re-query (populate_existing) when they need fresh rows.
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def create_tables():
    """
    Creates missing tables for local development without Alembic.

    Existing tables are left alone, so a database created before violations.voided
    existed keeps running without it (see migrate_add_voided.py).
    """
    import guardpost.models  # noqa – import all models
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
