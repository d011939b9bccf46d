from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase
from starlette.requests import Request

from app.config import Settings


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class Database:
    """
    Owns the async engine and session factory.

    Created once in the application lifespan and stored on ``app.state``;
    request handlers receive sessions through ``get_db``.
    """

    def __init__(self, url: str, echo: bool = False, **engine_kwargs):
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        url = make_url(settings.database_url)
        if url.get_backend_name() == "postgresql":
            # Pool sized for small serverless instances behind pgbouncer
            return cls(
                settings.database_url,
                echo=settings.debug,
                pool_pre_ping=True,
                pool_size=3,
                max_overflow=5,
                pool_timeout=10,
                pool_recycle=300,
                connect_args={
                    "statement_cache_size": 0,
                    "prepared_statement_cache_size": 0,
                    "command_timeout": 30,
                },
            )
        return cls(settings.database_url, echo=settings.debug)

    async def create_all(self) -> None:
        """Create tables directly from metadata (used for local sqlite and tests)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request):
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
