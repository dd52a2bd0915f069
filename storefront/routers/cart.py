# storefront/routers/cart.py
import logging
import uuid
from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from storefront.core.assets import AssetResolver
from storefront.core.config import Settings
from storefront.deps import (
    get_app_settings,
    get_asset_resolver,
    get_cart_session,
    get_catalog_service,
    get_registry,
)
from storefront.models.cart import INVALID_PRODUCT_MESSAGE, InvalidProduct
from storefront.schemas.cart import CartSummary
from storefront.services import cart_engine
from storefront.services.cart_service import CartSession, CartSessionRegistry, build_cart_summary
from storefront.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["Cart"])


def _summary_builder(
    cart: CartSession = Depends(get_cart_session),
    resolver: AssetResolver = Depends(get_asset_resolver),
    settings: Settings = Depends(get_app_settings),
):
    def build() -> CartSummary:
        return build_cart_summary(cart, resolver, settings.FALLBACK_IMAGE)

    return build


# -------- Session lifecycle --------


@router.post("/sessions", response_model=CartSummary, status_code=status.HTTP_201_CREATED)
def start_session(
    registry: CartSessionRegistry = Depends(get_registry),
    resolver: AssetResolver = Depends(get_asset_resolver),
    settings: Settings = Depends(get_app_settings),
):
    """
    Start a new cart session.

    Returns the (empty) cart summary; use its `session_id` in later calls.
    """
    cart = registry.create()
    return build_cart_summary(cart, resolver, settings.FALLBACK_IMAGE)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def end_session(
    session_id: uuid.UUID,
    registry: CartSessionRegistry = Depends(get_registry),
):
    """
    End a cart session and drop its cart.
    """
    if not registry.close(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Cart session not found",
        )
    return None


# -------- Cart --------


@router.get("/{session_id}", response_model=CartSummary)
def get_cart(summary: Callable[[], CartSummary] = Depends(_summary_builder)):
    """
    Get the cart summary: line items, totals and drawer state.
    """
    return summary()


@router.post("/{session_id}/items", response_model=CartSummary)
async def add_product(
    payload: Any = Body(default=None),
    cart: CartSession = Depends(get_cart_session),
    catalog: CatalogService = Depends(get_catalog_service),
    summary: Callable[[], CartSummary] = Depends(_summary_builder),
):
    """
    Add one unit of a product to the cart.

    The body is a catalog product (camelCase fields). Only its sku is trusted:
    the line item is built from the catalog's own copy of the product.

    - 422 "Invalid product data." for malformed data or an sku the catalog
      does not carry; the cart is left unchanged.
    - 502 if the catalog could not be fetched.
    """
    requested = cart_engine.coerce_product(payload)
    if isinstance(requested, InvalidProduct):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=requested.message,
        )

    result = await catalog.get_product(requested.sku)
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=result.error,
        )
    if result.data is None:
        logger.info("Cart %s rejected unknown sku %s", cart.id, requested.sku)
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=INVALID_PRODUCT_MESSAGE,
        )

    cart.add_product(result.data)
    return summary()


@router.post("/{session_id}/items/{sku}/increase", response_model=CartSummary)
def increase_quantity(
    sku: str,
    cart: CartSession = Depends(get_cart_session),
    summary: Callable[[], CartSummary] = Depends(_summary_builder),
):
    """
    Quantity + 1. Unknown sku is a no-op.
    """
    cart.increase_quantity(sku)
    return summary()


@router.post("/{session_id}/items/{sku}/decrease", response_model=CartSummary)
def decrease_quantity(
    sku: str,
    cart: CartSession = Depends(get_cart_session),
    summary: Callable[[], CartSummary] = Depends(_summary_builder),
):
    """
    Quantity - 1. At quantity 1 the item is removed. Unknown sku is a no-op.
    """
    cart.decrease_quantity(sku)
    return summary()


@router.delete("/{session_id}/items/{sku}", response_model=CartSummary)
def remove_product(
    sku: str,
    cart: CartSession = Depends(get_cart_session),
    summary: Callable[[], CartSummary] = Depends(_summary_builder),
):
    """
    Remove a product from the cart (if present).
    """
    cart.remove_product(sku)
    return summary()


# -------- Drawer state --------


@router.post("/{session_id}/open", response_model=CartSummary)
def open_cart(
    cart: CartSession = Depends(get_cart_session),
    summary: Callable[[], CartSummary] = Depends(_summary_builder),
):
    cart.open_cart()
    return summary()


@router.post("/{session_id}/close", response_model=CartSummary)
def close_cart(
    cart: CartSession = Depends(get_cart_session),
    summary: Callable[[], CartSummary] = Depends(_summary_builder),
):
    cart.close_cart()
    return summary()
