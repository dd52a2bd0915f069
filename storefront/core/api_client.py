# storefront/core/api_client.py
"""
HTTP client for the remote shop API (catalog + payment).

Every call goes through ResilientFetcher.request():
  - up to MAX_RETRIES attempts
  - a fixed RETRY_DELAY pause between failed attempts (none after the last)
  - always resolves to a FetchResult; network, server and body errors are
    reported in `error`, never raised to the caller

Usage:
    async with build_async_client(settings) as client:
        fetcher = ResilientFetcher.from_settings(client, settings)
        result = await fetcher.fetch_products()
        if result.ok:
            ...
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from storefront.core.config import Settings
from storefront.models.product import Product

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_RETRIES = 3
RETRY_DELAY = 1.0  # seconds

PRODUCTS_FALLBACK_ERROR = "Failed to fetch products. Please try again later."
PAYMENT_FALLBACK_ERROR = "Payment failed. Please try again later."

_product_list = TypeAdapter(list[Product])


class FetchError(Exception):
    """A single failed attempt (bad status, transport error or unusable body)."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """
    Uniform result of a resilient fetch.

    Exactly one of data / error is set. `loading` is always False once the
    caller sees the result: retries are exhausted before returning.
    """

    data: T | None = None
    error: str | None = None
    loading: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


def build_async_client(settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    """Get a configured async httpx client for the remote shop API."""
    return httpx.AsyncClient(
        base_url=settings.CATALOG_API_URL,
        timeout=settings.REQUEST_TIMEOUT,
        transport=transport,
    )


def handle_response(response: httpx.Response) -> Any:
    """
    Return the decoded JSON body of a successful response.

    Raises FetchError for:
      - non-2xx status: message taken from the body's "message" field when
        the body is JSON, else "HTTP error! Status: <code>"
      - a 2xx body that is not valid JSON
    """
    if not response.is_success:
        message = f"HTTP error! Status: {response.status_code}"
        try:
            error_data = response.json()
        except ValueError:
            error_data = None
        if isinstance(error_data, dict) and error_data.get("message"):
            message = str(error_data["message"])
        raise FetchError(message, status_code=response.status_code)

    try:
        return response.json()
    except ValueError as e:
        raise FetchError(f"Invalid JSON in response body: {e}", status_code=response.status_code) from e


class ResilientFetcher:
    """
    Bounded retry-with-delay around the remote shop API.

    Holds no per-call state: attempt counters and the last error live in
    request(), so concurrent calls on one fetcher do not interfere.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        products_path: str = "/api/products",
        payment_path: str = "/api/payment",
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.client = client
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.products_path = products_path
        self.payment_path = payment_path
        self._sleep = sleep

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: Settings, **kwargs) -> "ResilientFetcher":
        return cls(
            client,
            max_retries=settings.MAX_RETRIES,
            retry_delay=settings.RETRY_DELAY,
            products_path=settings.PRODUCTS_PATH,
            payment_path=settings.PAYMENT_PATH,
            **kwargs,
        )

    async def _attempt(
        self,
        method: str,
        url: str,
        json: Any,
        parse: Callable[[Any], T] | None,
    ) -> T:
        try:
            response = await self.client.request(method, url, json=json)
        except httpx.HTTPError as e:
            raise FetchError(str(e) or type(e).__name__) from e

        data = handle_response(response)
        if parse is None:
            return data

        try:
            return parse(data)
        except (ValidationError, ValueError, TypeError) as e:
            raise FetchError(f"Unexpected response shape: {e}", status_code=response.status_code) from e

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        parse: Callable[[Any], T] | None = None,
        fallback_error: str,
    ) -> FetchResult[T]:
        """
        Perform a request with retries.

        Args:
            method: HTTP method
            url: path relative to the client's base_url (or absolute)
            json: optional JSON payload
            parse: optional converter from decoded JSON to the expected shape;
                   a rejection counts as a failed attempt
            fallback_error: message reported when the last failure had none

        Returns:
            FetchResult with data on the first success, or with the last
            error message once every attempt has failed.
        """
        last_error: FetchError | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                data = await self._attempt(method, url, json, parse)
                return FetchResult(data=data)
            except FetchError as e:
                last_error = e
                logger.warning(
                    "%s %s failed (attempt %s/%s): %s",
                    method, url, attempt, self.max_retries, e.message,
                )

            if attempt < self.max_retries:
                await self._sleep(self.retry_delay)

        logger.error("%s %s gave up after %s attempts", method, url, self.max_retries)
        message = last_error.message if last_error and last_error.message else fallback_error
        return FetchResult(error=message)

    async def fetch_products(self) -> FetchResult[list[Product]]:
        """Retrieve the whole catalog."""
        return await self.request(
            "GET",
            self.products_path,
            parse=_product_list.validate_python,
            fallback_error=PRODUCTS_FALLBACK_ERROR,
        )

    async def process_payment(self, payment: dict[str, Any]) -> FetchResult[Any]:
        """Submit a payment payload; the payload is opaque beyond being JSON-serializable."""
        return await self.request(
            "POST",
            self.payment_path,
            json=payment,
            fallback_error=PAYMENT_FALLBACK_ERROR,
        )
