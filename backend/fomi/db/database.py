from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from fomi.core.config import settings
from fomi.core.logging import db_logger

# Base class for models
Base = declarative_base()


def to_async_url(url: str) -> str:
    """Convert a sync database URL to its async driver variant."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return url


class Database:
    """Engine and session factory, created once at process start.

    Handed to request handlers through ``app.state.db`` instead of living in
    module globals, so tests and scripts can build their own.
    """

    def __init__(self, url: str = None, echo: bool = None):
        self.url = to_async_url(url or settings.DATABASE_URL)
        self.engine: AsyncEngine = create_async_engine(
            self.url,
            echo=settings.DEBUG if echo is None else echo,
        )
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        db_logger.info("Database tables ensured", url=self.engine.url.render_as_string(hide_password=True))

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request):
    database: Database = request.app.state.db
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
