# storefront/main.py
from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.core.api_client import ResilientFetcher, build_async_client
from storefront.core.assets import AssetResolver, StaticAssetResolver
from storefront.core.config import Settings, get_settings
from storefront.services.cart_service import CartSessionRegistry
from storefront.services.catalog_service import CatalogService
from storefront.services.checkout_service import CheckoutService

# Routers
from storefront.routers.products import router as products_router
from storefront.routers.cart import router as cart_router
from storefront.routers.checkout import router as checkout_router

logger = logging.getLogger("uvicorn")

GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again later."


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Outermost error boundary.

    Any exception a route did not handle is logged and turned into a generic
    500; the failing request is the only one affected.
    """
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": GENERIC_ERROR_MESSAGE},
    )


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    asset_resolver: AssetResolver | None = None,
) -> FastAPI:
    """
    Build the storefront application.

    Args:
        settings: defaults to the cached environment settings
        transport: optional httpx transport for the remote shop API (tests)
        asset_resolver: defaults to StaticAssetResolver over ASSET_DIR
    """
    settings = settings or get_settings()

    logging.basicConfig(level=settings.LOG_LEVEL.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        Startup:
          - Open the http client for the remote shop API.
          - Create the cart session registry and services.

        Shutdown:
          - End all cart sessions and close the http client.
        """
        logger.info("Startup: remote shop API at %s", settings.CATALOG_API_URL)
        client = build_async_client(settings, transport=transport)
        fetcher = ResilientFetcher.from_settings(client, settings)
        resolver = asset_resolver or StaticAssetResolver(settings.ASSET_DIR, settings.ASSET_BASE_URL)

        app.state.settings = settings
        app.state.asset_resolver = resolver
        app.state.cart_sessions = CartSessionRegistry(max_sessions=settings.MAX_CART_SESSIONS)
        app.state.catalog_service = CatalogService(fetcher, resolver, settings.FALLBACK_IMAGE)
        app.state.checkout_service = CheckoutService(fetcher)
        try:
            yield
        finally:
            app.state.cart_sessions.close_all()
            await client.aclose()
            logger.info("Shutdown: cart sessions closed, http client released.")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Versioned API prefix, e.g. /api/v1
    app.include_router(products_router, prefix=settings.API_V1_STR)
    app.include_router(cart_router, prefix=settings.API_V1_STR)
    app.include_router(checkout_router, prefix=settings.API_V1_STR)

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "storefront"}

    return app


app = create_app()
