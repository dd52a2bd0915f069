"""End-to-end tests for the storefront HTTP API."""

import json
import uuid

import httpx
import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from conftest import ScriptedHandler, StubResolver, product_data
from storefront.core.config import Settings
from storefront.main import GENERIC_ERROR_MESSAGE, create_app

API = "/api/v1"

CATALOG = [
    product_data(sku=1, title="Tee", price=10.0, availableSizes=["S", "M"]),
    product_data(sku=2, title="Hoodie", price=45.5, availableSizes=["M", "L"], installments=0),
    product_data(sku=3, title="Cap", price=8.25, availableSizes=[], imageUrl="https://cdn.test/cap.png"),
]


class ShopApi:
    """Fake remote shop API: serves CATALOG and answers payments."""

    def __init__(self, payment_status: int = 200):
        self.payment_status = payment_status
        self.payments: list[bytes] = []
        self.catalog_calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/products":
            self.catalog_calls += 1
            return httpx.Response(200, json=CATALOG)
        if request.url.path == "/api/payment":
            self.payments.append(request.content)
            if self.payment_status != 200:
                return httpx.Response(self.payment_status, json={"message": "Card declined"})
            return httpx.Response(200, json={"status": "approved"})
        return httpx.Response(404)


def _settings() -> Settings:
    return Settings(CATALOG_API_URL="http://shop.test", RETRY_DELAY=0)


@pytest.fixture
def shop() -> ShopApi:
    return ShopApi()


@pytest.fixture
def client(shop: ShopApi):
    app = create_app(
        settings=_settings(),
        transport=httpx.MockTransport(shop),
        asset_resolver=StubResolver(known={"1"}),
    )
    with TestClient(app) as c:
        yield c


def _start(client: TestClient) -> str:
    res = client.post(f"{API}/cart/sessions")
    assert res.status_code == 201
    return res.json()["session_id"]


class TestHealth:
    def test_root(self, client: TestClient) -> None:
        assert client.get("/").json() == {"status": "ok", "service": "storefront"}


class TestProducts:
    def test_list_all(self, client: TestClient) -> None:
        body = client.get(f"{API}/products").json()
        assert body["error"] is None
        assert body["loading"] is False
        assert body["total"] == 3
        assert [p["sku"] for p in body["data"]] == [1, 2, 3]

    def test_filter_by_sizes_and_price(self, client: TestClient) -> None:
        body = client.get(f"{API}/products", params={"sizes": ["M"], "max_price": 20}).json()
        assert [p["sku"] for p in body["data"]] == [1]

        body = client.get(f"{API}/products", params={"sizes": ["M", "L"]}).json()
        assert [p["sku"] for p in body["data"]] == [2]

    def test_card_fields(self, client: TestClient) -> None:
        cards = {p["sku"]: p for p in client.get(f"{API}/products").json()["data"]}
        tee = cards[1]
        assert tee["formatted_price"] == "10.00"
        assert tee["price_whole"] == "10"
        assert tee["price_cents"] == ".00"
        assert tee["installment"]["count"] == 9
        assert tee["image_url"] == "/static/products/1-1-product.webp"
        assert cards[2]["installment"] is None
        assert cards[2]["image_url"] == "/static/img/fallback.png"

    def test_catalog_fetched_once_unless_refreshed(self, client: TestClient, shop: ShopApi) -> None:
        client.get(f"{API}/products")
        client.get(f"{API}/products", params={"sizes": ["S"]})
        assert shop.catalog_calls == 1
        client.get(f"{API}/products", params={"refresh": True})
        assert shop.catalog_calls == 2

    def test_negative_max_price_rejected(self, client: TestClient) -> None:
        assert client.get(f"{API}/products", params={"max_price": -1}).status_code == 422

    def test_product_detail(self, client: TestClient) -> None:
        body = client.get(f"{API}/products/3").json()
        assert body["title"] == "Cap"
        assert body["image_url"] == "https://cdn.test/cap.png"
        assert body["detail_path"] == "/product/3"

    def test_product_detail_not_found(self, client: TestClient) -> None:
        assert client.get(f"{API}/products/999").status_code == 404


class TestProductsRemoteDown:
    def test_error_reported_in_body(self) -> None:
        handler = ScriptedHandler(httpx.Response(503, json={"message": "Maintenance"}))
        app = create_app(settings=_settings(), transport=httpx.MockTransport(handler), asset_resolver=StubResolver())
        with TestClient(app) as client:
            res = client.get(f"{API}/products")
            assert res.status_code == 200
            assert res.json() == {"data": None, "error": "Maintenance", "loading": False, "total": 0}
            assert handler.calls == 3

            assert client.get(f"{API}/products/1").status_code == 502

    def test_add_to_cart_needs_the_catalog(self) -> None:
        handler = ScriptedHandler(httpx.Response(503))
        app = create_app(settings=_settings(), transport=httpx.MockTransport(handler), asset_resolver=StubResolver())
        with TestClient(app) as client:
            sid = _start(client)
            res = client.post(f"{API}/cart/{sid}/items", json=CATALOG[0])
            assert res.status_code == 502
            assert client.get(f"{API}/cart/{sid}").json()["items"] == []


class TestCart:
    def test_session_lifecycle(self, client: TestClient) -> None:
        sid = _start(client)
        cart = client.get(f"{API}/cart/{sid}").json()
        assert cart["items"] == []
        assert cart["is_open"] is False

        assert client.delete(f"{API}/cart/sessions/{sid}").status_code == 204
        assert client.get(f"{API}/cart/{sid}").status_code == 404
        assert client.delete(f"{API}/cart/sessions/{sid}").status_code == 404

    def test_unknown_session(self, client: TestClient) -> None:
        assert client.get(f"{API}/cart/{uuid.uuid4()}").status_code == 404
        assert client.post(f"{API}/cart/{uuid.uuid4()}/items", json=CATALOG[0]).status_code == 404

    def test_add_twice_then_adjust(self, client: TestClient) -> None:
        sid = _start(client)
        client.post(f"{API}/cart/{sid}/items", json=CATALOG[0])
        cart = client.post(f"{API}/cart/{sid}/items", json={**CATALOG[0], "quantity": 1}).json()
        assert len(cart["items"]) == 1
        assert cart["items"][0]["quantity"] == 2
        assert cart["total_quantity"] == 2
        assert cart["total_price"] == pytest.approx(20.0)
        assert cart["items"][0]["image_url"] == "/static/products/1-1-cart.webp"

        cart = client.post(f"{API}/cart/{sid}/items/1/increase").json()
        assert cart["items"][0]["quantity"] == 3

        cart = client.post(f"{API}/cart/{sid}/items/1/decrease").json()
        assert cart["items"][0]["quantity"] == 2

    def test_decrease_from_one_removes(self, client: TestClient) -> None:
        sid = _start(client)
        client.post(f"{API}/cart/{sid}/items", json=CATALOG[1])
        cart = client.post(f"{API}/cart/{sid}/items/2/decrease").json()
        assert cart["items"] == []
        assert cart["total_quantity"] == 0

    def test_remove_and_noop(self, client: TestClient) -> None:
        sid = _start(client)
        client.post(f"{API}/cart/{sid}/items", json=CATALOG[0])
        client.post(f"{API}/cart/{sid}/items", json=CATALOG[1])
        cart = client.delete(f"{API}/cart/{sid}/items/1").json()
        assert [i["sku"] for i in cart["items"]] == [2]

        cart = client.delete(f"{API}/cart/{sid}/items/77").json()
        assert [i["sku"] for i in cart["items"]] == [2]
        cart = client.post(f"{API}/cart/{sid}/items/77/decrease").json()
        assert [i["sku"] for i in cart["items"]] == [2]

    @pytest.mark.parametrize(
        "payload",
        [
            {"title": "missing sku", "price": 1},
            {"sku": 5, "price": 1},
            {"sku": 5, "title": "neg", "price": -1},
            ["not", "a", "product"],
            None,
        ],
    )
    def test_invalid_product(self, client: TestClient, payload) -> None:
        sid = _start(client)
        client.post(f"{API}/cart/{sid}/items", json=CATALOG[0])
        res = client.post(f"{API}/cart/{sid}/items", json=payload)
        assert res.status_code == 422
        assert res.json()["detail"] == "Invalid product data."
        cart = client.get(f"{API}/cart/{sid}").json()
        assert [i["sku"] for i in cart["items"]] == [1]

    def test_overflowing_price_rejected(self, client: TestClient) -> None:
        sid = _start(client)
        res = client.post(
            f"{API}/cart/{sid}/items",
            content=b'{"sku": 1, "title": "Tee", "price": 1e999}',
            headers={"Content-Type": "application/json"},
        )
        assert res.status_code == 422
        assert res.json()["detail"] == "Invalid product data."
        assert client.get(f"{API}/cart/{sid}").json()["items"] == []

    def test_line_item_uses_catalog_price(self, client: TestClient) -> None:
        sid = _start(client)
        cart = client.post(
            f"{API}/cart/{sid}/items",
            json={**CATALOG[0], "price": 0.01, "title": "Renamed"},
        ).json()
        item = cart["items"][0]
        assert item["price"] == pytest.approx(10.0)
        assert item["title"] == "Tee"
        assert cart["total_price"] == pytest.approx(10.0)

    def test_sku_missing_from_catalog_rejected(self, client: TestClient) -> None:
        sid = _start(client)
        res = client.post(f"{API}/cart/{sid}/items", json=product_data(sku=404, title="Ghost"))
        assert res.status_code == 422
        assert res.json()["detail"] == "Invalid product data."
        assert client.get(f"{API}/cart/{sid}").json()["items"] == []

    def test_open_close(self, client: TestClient) -> None:
        sid = _start(client)
        assert client.post(f"{API}/cart/{sid}/open").json()["is_open"] is True
        assert client.post(f"{API}/cart/{sid}/close").json()["is_open"] is False

    def test_sessions_are_isolated(self, client: TestClient) -> None:
        a, b = _start(client), _start(client)
        client.post(f"{API}/cart/{a}/items", json=CATALOG[0])
        assert client.get(f"{API}/cart/{b}").json()["items"] == []


class TestCheckout:
    def test_empty_cart_rejected(self, client: TestClient) -> None:
        sid = _start(client)
        res = client.post(f"{API}/checkout/{sid}", json={"payment": {"token": "tok"}})
        assert res.status_code == 400
        assert res.json()["detail"] == "Cart is empty"

    def test_successful_checkout_clears_cart(self, client: TestClient, shop: ShopApi) -> None:
        sid = _start(client)
        client.post(f"{API}/cart/{sid}/items", json=CATALOG[0])
        client.post(f"{API}/cart/{sid}/items", json=CATALOG[0])

        res = client.post(f"{API}/checkout/{sid}", json={"payment": {"token": "tok"}})
        assert res.status_code == 200
        assert res.json() == {"data": {"status": "approved"}, "error": None, "loading": False}

        assert len(shop.payments) == 1
        assert b'"quantity":2' in shop.payments[0].replace(b" ", b"")
        assert b'"token"' in shop.payments[0]
        assert client.get(f"{API}/cart/{sid}").json()["items"] == []

    def test_payment_charges_catalog_price(self, client: TestClient, shop: ShopApi) -> None:
        sid = _start(client)
        client.post(f"{API}/cart/{sid}/items", json={**CATALOG[0], "price": 0.01})

        client.post(f"{API}/checkout/{sid}", json={"payment": {"token": "tok"}})

        body = json.loads(shop.payments[0])
        assert body["total"] == pytest.approx(10.0)
        assert body["items"] == [{"sku": 1, "quantity": 1, "price": 10.0}]

    def test_failed_payment_keeps_cart(self) -> None:
        shop = ShopApi(payment_status=402)
        app = create_app(settings=_settings(), transport=httpx.MockTransport(shop), asset_resolver=StubResolver())
        with TestClient(app) as client:
            sid = _start(client)
            client.post(f"{API}/cart/{sid}/items", json=CATALOG[0])
            body = client.post(f"{API}/checkout/{sid}", json={"payment": {}}).json()
            assert body["data"] is None
            assert body["error"] == "Card declined"
            assert len(shop.payments) == 3
            assert len(client.get(f"{API}/cart/{sid}").json()["items"]) == 1

    def test_unexpected_fields_rejected(self, client: TestClient) -> None:
        sid = _start(client)
        client.post(f"{API}/cart/{sid}/items", json=CATALOG[0])
        assert client.post(f"{API}/checkout/{sid}", json={"card": "1234"}).status_code == 422


class TestErrorBoundary:
    def test_unhandled_error_becomes_generic_500(self) -> None:
        app = create_app(settings=_settings(), transport=httpx.MockTransport(ShopApi()), asset_resolver=StubResolver())

        broken = APIRouter()

        @broken.get("/broken")
        def explode():
            raise RuntimeError("render failed")

        app.include_router(broken)

        with TestClient(app, raise_server_exceptions=False) as client:
            res = client.get("/broken")
            assert res.status_code == 500
            assert res.json() == {"detail": GENERIC_ERROR_MESSAGE}

            # the rest of the app keeps working
            sid = _start(client)
            assert client.get(f"{API}/cart/{sid}").status_code == 200
