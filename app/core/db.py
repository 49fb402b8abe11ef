from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from app.core.config import Settings

_ASYNC_DRIVERS = {
    "postgresql": "postgresql+asyncpg",
    "postgres": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def to_async_url(database_url: str) -> str:
    """Map a plain postgresql:// or sqlite:// URL onto its async driver.

    asyncpg does not accept psycopg params like sslmode/channel_binding, so those
    are stripped; SSL is enabled via connect_args instead.
    """
    url = make_url(database_url)
    drivername = _ASYNC_DRIVERS.get(url.drivername, url.drivername)
    url = url.set(drivername=drivername).difference_update_query(["sslmode", "channel_binding"])
    return url.render_as_string(hide_password=False)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    url = to_async_url(settings.database_url)
    if url.startswith("sqlite"):
        # One shared connection so in-memory databases survive across sessions
        return create_async_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    ssl_required = "sslmode=require" in settings.database_url
    return create_async_engine(
        url,
        echo=settings.env == "development",
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        connect_args={"ssl": True} if ssl_required else {},
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create tables if using create_all; prefer Alembic in production."""
    # Import models so their tables are registered on the metadata
    import app.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
