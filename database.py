# database.py

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config import get_settings


def make_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async engine; SQLite connections get a busy timeout and enforced FKs."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"timeout": get_settings().sqlite_busy_timeout}

    engine = create_async_engine(database_url, echo=echo, connect_args=connect_args)

    if database_url.startswith("sqlite"):
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


settings = get_settings()
engine = make_engine(settings.database_url, echo=settings.sql_echo)
AsyncSessionLocal = make_session_factory(engine)


# Dependency to get DB session
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables(target: AsyncEngine = engine) -> None:
    from models import Base  # Import Base here to avoid circular imports
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

