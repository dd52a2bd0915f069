# storefront/routers/products.py
from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront.deps import get_catalog_service
from storefront.models.product import FilterCriteria
from storefront.schemas.product import ProductDetail, ProductListResponse
from storefront.services.catalog_service import CatalogService

router = APIRouter(prefix="/products", tags=["Products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    sizes: list[str] = Query(default=[]),
    max_price: float | None = Query(default=None, ge=0),
    refresh: bool = False,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """
    List catalog products matching the filter.

    - `sizes`: repeatable; a product must carry every listed size.
    - `max_price`: inclusive upper bound.
    - `refresh=true` refetches the catalog from the remote shop API.

    Fetch failures are reported in `error` (status 200), never raised.
    """
    criteria = FilterCriteria(sizes=tuple(sizes), max_price=max_price)
    result = await catalog.browse(criteria, refresh=refresh)

    if not result.ok:
        return ProductListResponse(error=result.error)

    cards = [catalog.build_card(p) for p in result.data]
    return ProductListResponse(data=cards, total=len(cards))


@router.get("/{sku}", response_model=ProductDetail)
async def get_product(
    sku: str,
    catalog: CatalogService = Depends(get_catalog_service),
):
    """
    Get a single product by sku.

    - 502 if the catalog could not be fetched.
    - 404 if the catalog has no such product.
    """
    result = await catalog.get_product(sku)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.error,
        )
    if result.data is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Product not found",
        )
    return catalog.build_detail(result.data)
