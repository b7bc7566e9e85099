from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from fastapi import Request
from .errors import InventoryTrackerError
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


def mask_url(url: str) -> str:
    """Renders a database URL with the password hidden."""
    return make_url(url).render_as_string(hide_password=True)


class Database:
    """Store handle: owns the async engine and the session factory.

    Constructed once per app and opened/closed by the app lifespan.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    async def open(self, create_tables: bool = True) -> None:
        logger.info(f"Creating database engine with URL: {mask_url(self.url)}")
        self.engine = create_async_engine(self.url, echo=self.echo, pool_pre_ping=True)
        # expire_on_commit=False keeps returned records readable after commit
        self.session_factory = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        if create_tables:
            # Development convenience; use a migration tool for production schemas
            logger.info("Checking/Creating database tables...")
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables check complete.")

    async def close(self) -> None:
        if self.engine is not None:
            logger.info("Disposing database engine")
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None

    def session(self) -> AsyncSession:
        if self.session_factory is None:
            raise RuntimeError("Database is not open")
        return self.session_factory()


async def get_db_session(request: Request) -> AsyncSession:
    """FastAPI dependency to inject DB session."""
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        except InventoryTrackerError:
            # Business-rule rejection; nothing was written
            await session.rollback()
            raise
        except Exception as e:
            logger.error(f"Rolling back session due to error: {e!r}")
            await session.rollback()
            raise
