# storefront/deps.py
"""
FastAPI dependencies.

Everything stateful (cart sessions, catalog, http client) is built in the
application lifespan and stored on app.state; routes reach it only through
these functions.

Usage:

    from fastapi import Depends

    @router.get("/example")
    def example_endpoint(cart: CartSession = Depends(get_cart_session)):
        ...
"""
import uuid

from fastapi import HTTPException, Request, status

from storefront.core.assets import AssetResolver
from storefront.core.config import Settings
from storefront.services.cart_service import CartSession, CartSessionRegistry
from storefront.services.catalog_service import CatalogService
from storefront.services.checkout_service import CheckoutService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_registry(request: Request) -> CartSessionRegistry:
    return request.app.state.cart_sessions


def get_asset_resolver(request: Request) -> AssetResolver:
    return request.app.state.asset_resolver


def get_catalog_service(request: Request) -> CatalogService:
    return request.app.state.catalog_service


def get_checkout_service(request: Request) -> CheckoutService:
    return request.app.state.checkout_service


def get_cart_session(session_id: uuid.UUID, request: Request) -> CartSession:
    """
    Resolve the cart session named in the path.

    Raises:
        HTTPException(404): if the session does not exist (never started or ended).
    """
    session = get_registry(request).get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Cart session not found",
        )
    return session
