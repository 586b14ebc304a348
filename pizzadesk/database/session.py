"""
Asynchronous database session management for FastAPI
Using SQLite with aiosqlite backend and WAL mode enabled
"""
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy import event
from config import DATABASE_URL


def build_engine(url: str = DATABASE_URL) -> AsyncEngine:
    """Create an async engine; SQLite connections get the WAL/busy-timeout PRAGMAs"""
    is_sqlite = url.startswith("sqlite")
    new_engine = create_async_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False, "timeout": 30} if is_sqlite else {},
    )

    if is_sqlite:
        @event.listens_for(new_engine.sync_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            """Enable WAL, foreign keys, and reasonable performance options"""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")     # Readers don't block the counter writer
            cursor.execute("PRAGMA synchronous = NORMAL;")  # Faster commits, still durable
            cursor.execute("PRAGMA busy_timeout = 30000;")  # Concurrent writers wait instead of failing
            cursor.close()

    return new_engine


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine()
AsyncSessionLocal = build_sessionmaker(engine)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create all tables (idempotent)"""
    from pizzadesk.database.base import Base
    import pizzadesk.database.models  # noqa: F401  (registers every model)

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# --- Dependency for FastAPI endpoints ---
async def get_db():
    """
    Provides a new async database session per request.
    Closes it automatically when the request is done.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
