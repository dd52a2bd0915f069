"""Shared pytest fixtures and test helpers for storefront tests."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from storefront.core.assets import AssetHandle, AssetNotFound
from storefront.models.product import Product


def product_data(**overrides: Any) -> dict[str, Any]:
    """Catalog product as the remote shop API sends it (camelCase)."""
    data = {
        "id": 1,
        "sku": 1,
        "title": "Cropped Stay Groovy off white",
        "description": "4 MSL",
        "style": "Branco com listras pretas",
        "price": 10.9,
        "currencyId": "USD",
        "currencyFormat": "$",
        "availableSizes": ["S", "M"],
        "installments": 9,
        "isFreeShipping": True,
    }
    data.update(overrides)
    return data


def make_product(**overrides: Any) -> Product:
    return Product.model_validate(product_data(**overrides))


class StubResolver:
    """Asset resolver that only knows the skus it was given."""

    def __init__(self, known: set[str] | None = None):
        self.known = known or set()
        self.calls: list[tuple[str, str]] = []

    def resolve_asset(self, sku, variant):
        self.calls.append((str(sku), variant))
        if str(sku) in self.known:
            return AssetHandle(url=f"/static/products/{sku}-1-{variant}.webp")
        return AssetNotFound(path=f"products/{sku}-1-{variant}.webp")


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedHandler:
    """
    httpx.MockTransport handler returning queued responses in order;
    the last one repeats once the queue runs out.
    """

    def __init__(self, *responses: httpx.Response | Exception | Callable[[httpx.Request], httpx.Response]):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        if callable(response) and not isinstance(response, httpx.Response):
            return response(request)
        # a fresh copy per call, queued responses may be served repeatedly
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def product() -> Product:
    return make_product()


@pytest.fixture
def resolver() -> StubResolver:
    return StubResolver()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
