"""
Database engine configuration.
Uses the SQLAlchemy 2.0 asyncio extension.

The session factory and the data context live in djstore_api; this module
only owns the engine (one connection pool per process) and the raw
connectivity check used by the readiness check.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from djstore_shared.config.settings import Settings, settings


def create_store_engine(config: Settings | None = None) -> AsyncEngine:
    """
    Create the async engine for the configured connection string.

    Pool settings only apply to server databases; in-memory SQLite needs a
    single shared connection so every session sees the same database.
    """
    config = config or settings
    url = config.sql_connection

    if config.uses_sqlite:
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            return create_async_engine(
                url,
                echo=config.db_echo,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_async_engine(url, echo=config.db_echo)

    return create_async_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_timeout=config.db_pool_timeout,
        pool_recycle=config.db_pool_recycle,
        echo=config.db_echo,
    )


engine = create_store_engine()


async def check_database_connection(bind: AsyncEngine | None = None) -> dict[str, str]:
    """
    Open a raw connection and run a trivial statement.

    Bypasses sessions and the data context entirely. Raises whatever the
    driver raises when the store is unreachable.
    """
    bind = bind or engine
    async with bind.connect() as connection:
        await connection.execute(text("SELECT 1"))
    return {"dialect": bind.dialect.name}
