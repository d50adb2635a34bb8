"""
Product endpoints.

Every route goes through the data context: reads honour the global filter,
deletes are logical.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from djstore_api.models import Category, Product
from djstore_api.routers._common.pagination import Pagination, get_pagination, to_list_result
from djstore_api.routers.catalog_schemas import (
    ExistsOutput,
    ProductCreate,
    ProductOutput,
    ProductUpdate,
)
from djstore_api.services.crud.data_context import DataContextProtocol
from djstore_api.services.crud.dependencies import get_data_context
from djstore_shared.utils.exceptions import NotFoundError, ValidationError
from djstore_shared.utils.schemas import ListResult


router = APIRouter(prefix="/api/v1/products", tags=["products"])


async def _require_category(ctx: DataContextProtocol, category_id: UUID) -> None:
    if not await ctx.exists(Category, category_id):
        raise ValidationError("Unknown category", category_id=str(category_id))


@router.get(
    "",
    response_model=ListResult[ProductOutput],
    response_model_exclude_none=True,
)
async def list_products(
    category_id: UUID | None = None,
    include_deleted: bool = Query(default=False, description="Include deleted products"),
    pagination: Pagination = Depends(get_pagination),
    ctx: DataContextProtocol = Depends(get_data_context),
) -> ListResult[ProductOutput]:
    """List products, one page at a time."""
    query = ctx.get_data(Product, ignore_query_filters=include_deleted)
    if category_id:
        query = query.where(Product.category_id == category_id)
    query = query.order_by(Product.name, Product.id)
    return await to_list_result(query, pagination, ProductOutput.model_validate)


@router.get("/{product_id}", response_model=ProductOutput, response_model_exclude_none=True)
async def get_product(
    product_id: UUID,
    ctx: DataContextProtocol = Depends(get_data_context),
) -> ProductOutput:
    """Get a specific product."""
    product = await ctx.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return ProductOutput.model_validate(product)


@router.get("/{product_id}/exists", response_model=ExistsOutput)
async def product_exists(
    product_id: UUID,
    ctx: DataContextProtocol = Depends(get_data_context),
) -> ExistsOutput:
    """Whether a visible product has that id."""
    return ExistsOutput(exists=await ctx.exists(Product, product_id))


@router.post(
    "",
    response_model=ProductOutput,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_product(
    body: ProductCreate,
    ctx: DataContextProtocol = Depends(get_data_context),
) -> ProductOutput:
    """Create a new product."""
    await _require_category(ctx, body.category_id)

    product = Product(**body.model_dump())
    ctx.create(product)
    await ctx.save()

    # Re-read to return the stored (trimmed) values
    stored = await ctx.get(Product, product.id)
    return ProductOutput.model_validate(stored)


@router.patch("/{product_id}", response_model=ProductOutput, response_model_exclude_none=True)
async def update_product(
    product_id: UUID,
    body: ProductUpdate,
    ctx: DataContextProtocol = Depends(get_data_context),
) -> ProductOutput:
    """Update a product."""
    product = await (
        ctx.get_data(Product, tracking_changes=True).where(Product.id == product_id).first()
    )
    if not product:
        raise NotFoundError("Product", product_id)

    # Only the description can be cleared
    update_data = {
        key: value
        for key, value in body.model_dump(exclude_unset=True).items()
        if value is not None or key == "description"
    }
    if update_data.get("category_id"):
        await _require_category(ctx, update_data["category_id"])

    for key, value in update_data.items():
        setattr(product, key, value)

    await ctx.save()

    stored = await ctx.get(Product, product_id)
    return ProductOutput.model_validate(stored)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: UUID,
    ctx: DataContextProtocol = Depends(get_data_context),
) -> None:
    """Delete a product (logical delete)."""
    product = await (
        ctx.get_data(Product, tracking_changes=True).where(Product.id == product_id).first()
    )
    if not product:
        raise NotFoundError("Product", product_id)

    ctx.delete(product)
    await ctx.save()
