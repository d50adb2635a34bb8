"""
FastAPI dependencies exposing the data context.

Both providers resolve to the same per-request instance:

    @router.get("/products/{product_id}")
    async def get_product(product_id: UUID, ctx: DataContextProtocol = Depends(get_data_context)):
        return await ctx.get(Product, product_id)

Tests override `get_db_context` to point every route at a test database.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends

from djstore_api.db import SessionLocal
from djstore_api.services.crud.data_context import DataContext, DataContextProtocol


async def get_db_context() -> AsyncGenerator[DataContext, None]:
    """
    Concrete data context for the current request.

    The session (and its connection lease) is closed after the response.
    """
    async with DataContext(SessionLocal()) as ctx:
        yield ctx


def get_data_context(ctx: DataContext = Depends(get_db_context)) -> DataContextProtocol:
    """Same instance as get_db_context, typed as the contract."""
    return ctx
