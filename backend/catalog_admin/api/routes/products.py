from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from catalog_admin.api.deps import get_product_service
from catalog_admin.schemas.product import (
    BulkDeleteRequest,
    BulkDeleteResponse,
    ProductCreate,
    ProductListResponse,
    ProductOut,
    ProductResolved,
    ProductUpdate,
)
from catalog_admin.services.catalog.product_service import ProductService

router = APIRouter()


@router.get("/", response_model=ProductListResponse)
async def list_products(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    brand: Optional[str] = None,
    category: Optional[str] = None,
    in_stock: bool = Query(False, alias="inStock"),
    has_variants: Optional[bool] = Query(None, alias="hasVariants"),
    min_price: Optional[float] = Query(None, alias="minPrice"),
    max_price: Optional[float] = Query(None, alias="maxPrice"),
    sort: str = Query("-createdAt"),
    service: ProductService = Depends(get_product_service),
):
    """Paginated, minimal product rows for the admin grid."""
    return await service.list_products(
        page=page,
        limit=limit,
        search=search,
        brand=brand,
        category=category,
        in_stock=in_stock,
        has_variants=has_variants,
        min_price=min_price,
        max_price=max_price,
        sort=_snake_sort(sort),
    )


@router.post("/", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductCreate,
    service: ProductService = Depends(get_product_service),
):
    """Create a simple product or one with variants.

    When variants use more than one attribute, ``mainAttributeId`` is required;
    with a single attribute it is inferred.
    """
    return await service.create(payload.model_dump(exclude_unset=True))


@router.post("/update", response_model=ProductOut)
async def update_product(
    payload: ProductUpdate,
    service: ProductService = Depends(get_product_service),
):
    """Sparse update by ``id`` in the body. ``variants``, when sent, replaces the full set."""
    return await service.update(payload.model_dump(exclude_unset=True))


@router.post("/delete", response_model=BulkDeleteResponse)
async def bulk_delete_products(
    payload: BulkDeleteRequest,
    service: ProductService = Depends(get_product_service),
):
    return await service.bulk_delete(payload.ids)


@router.get("/{product_id}", response_model=ProductResolved)
async def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
):
    return await service.get_resolved(product_id)


def _snake_sort(sort: Optional[str]) -> Optional[str]:
    """``-createdAt`` -> ``-created_at``; snake_case input passes through."""
    if not sort:
        return sort
    out = []
    for ch in sort:
        if ch.isupper():
            out.append("_" + ch.lower())
        else:
            out.append(ch)
    return "".join(out)
