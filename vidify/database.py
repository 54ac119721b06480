from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import URL, event, make_url
from .config import settings
from .models import Base


def _async_url(raw_url: str) -> URL:
    """Map a configured database URL onto its async driver."""
    parsed = make_url(raw_url)
    if parsed.drivername and parsed.drivername.startswith("sqlite"):
        return URL.create(drivername="sqlite+aiosqlite", database=parsed.database)
    return URL.create(
        drivername="postgresql+asyncpg",
        username=parsed.username,
        password=parsed.password,
        host=parsed.host,
        port=parsed.port,
        database=parsed.database,
        query=parsed.query,  # Preserve SSL and other query parameters
    )


database_url = _async_url(settings.database_url)
is_sqlite = database_url.drivername.startswith("sqlite")

engine = create_async_engine(
    database_url,
    echo=settings.debug,  # Only echo SQL in debug mode
    # Concurrent writers queue on the SQLite file lock instead of failing fast
    connect_args={"timeout": 30} if is_sqlite else {},
)

if is_sqlite:
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


AsyncSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def get_db():
    """Dependency to get database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def create_tables():
    """Create all tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables():
    """Drop all tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
