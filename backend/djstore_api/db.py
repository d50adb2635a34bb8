"""
Session factory of the REST API.

Every session uses DataSession as its sync session class, so the audit
stamping and the global filter apply to all of them.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from djstore_api.services.crud.interceptors import DataSession
from djstore_shared.infrastructure.db import engine


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        sync_session_class=DataSession,
        autoflush=False,
        expire_on_commit=False,
    )


# Session factory
SessionLocal = create_session_factory(engine)
