# storefront/services/catalog_service.py
import logging
from collections.abc import Sequence
from urllib.parse import quote

import nh3

from storefront.core.api_client import FetchResult, ResilientFetcher
from storefront.core.assets import (
    DETAIL_PLACEHOLDER,
    FALLBACK_IMAGE,
    AssetResolver,
    image_url,
    is_valid_image_url,
)
from storefront.core.money import format_price, installment_price, split_price
from storefront.models.product import FilterCriteria, Product, same_sku
from storefront.schemas.product import InstallmentRead, ProductCard, ProductDetail

logger = logging.getLogger(__name__)


def matches(product: Product, criteria: FilterCriteria) -> bool:
    if not all(size in product.available_sizes for size in criteria.sizes):
        return False
    if criteria.max_price is not None and product.price > criteria.max_price:
        return False
    return True


def filter_products(products: Sequence[Product], criteria: FilterCriteria) -> list[Product]:
    """
    Products that carry every requested size and cost at most max_price.
    Input order is preserved; the input is not modified.
    """
    return [p for p in products if matches(p, criteria)]


class CatalogFilter:
    """
    Memoized filter_products: recomputes only when the product sequence
    (by identity) or the criteria (by value) change.
    """

    def __init__(self):
        self._products: Sequence[Product] | None = None
        self._criteria: FilterCriteria | None = None
        self._result: list[Product] = []

    def __call__(self, products: Sequence[Product], criteria: FilterCriteria) -> list[Product]:
        if products is not self._products or criteria != self._criteria:
            self._result = filter_products(products, criteria)
            self._products = products
            self._criteria = criteria
        return list(self._result)


class CatalogService:
    """
    Business logic for the product catalog.

    Responsibilities:
      - fetch the catalog through the resilient fetcher
      - keep the last good catalog snapshot (replaced wholesale, never patched)
      - filter it for the shelf and build card / detail read models
    """

    def __init__(
        self,
        fetcher: ResilientFetcher,
        resolver: AssetResolver,
        fallback_image: str = FALLBACK_IMAGE,
    ):
        self.fetcher = fetcher
        self.resolver = resolver
        self.fallback_image = fallback_image
        self._catalog: tuple[Product, ...] | None = None
        self._filter = CatalogFilter()

    @property
    def catalog(self) -> tuple[Product, ...] | None:
        return self._catalog

    async def load(self, refresh: bool = False) -> FetchResult[tuple[Product, ...]]:
        """
        Return the catalog snapshot, fetching it when missing or on refresh.

        A failed fetch leaves the previous snapshot untouched.
        """
        if self._catalog is not None and not refresh:
            return FetchResult(data=self._catalog)

        result = await self.fetcher.fetch_products()
        if not result.ok:
            return FetchResult(error=result.error)

        self._catalog = tuple(result.data)
        logger.info("Catalog loaded: %s product(s)", len(self._catalog))
        return FetchResult(data=self._catalog)

    async def browse(
        self,
        criteria: FilterCriteria,
        refresh: bool = False,
    ) -> FetchResult[list[Product]]:
        result = await self.load(refresh=refresh)
        if not result.ok:
            return FetchResult(error=result.error)
        return FetchResult(data=self._filter(result.data, criteria))

    async def get_product(self, sku: int | str) -> FetchResult[Product | None]:
        """
        Look a product up in the catalog snapshot.
        data is None when the catalog loaded but has no such sku.
        """
        result = await self.load()
        if not result.ok:
            return FetchResult(error=result.error)
        for product in result.data:
            if same_sku(product.sku, sku):
                return FetchResult(data=product)
        return FetchResult(data=None)

    # ---- read models ----

    def build_card(self, product: Product) -> ProductCard:
        formatted = format_price(product.price, product.currency_id)
        whole, cents = split_price(formatted)

        installment = None
        per_installment = installment_price(product.price, product.installments)
        if per_installment is not None:
            installment = InstallmentRead(
                count=product.installments,
                price=per_installment,
                formatted_price=format_price(per_installment, product.currency_id),
            )

        return ProductCard(
            sku=product.sku,
            title=product.title,
            price=product.price,
            currency_id=product.currency_id,
            currency_format=product.currency_format,
            formatted_price=formatted,
            price_whole=whole,
            price_cents=cents,
            available_sizes=list(product.available_sizes),
            installment=installment,
            is_free_shipping=product.is_free_shipping,
            image_url=image_url(self.resolver, product.sku, "product", self.fallback_image),
        )

    def build_detail(self, product: Product) -> ProductDetail:
        """
        Detail view of a product.

        The catalog's imageUrl is used only when it passes is_valid_image_url,
        otherwise the resolved (or placeholder) image is used.

        The description may carry HTML markup; it is cleaned with nh3 (scripts,
        event handlers and javascript: links are stripped) before it is served.
        """
        if is_valid_image_url(product.image_url):
            url = product.image_url
        else:
            url = image_url(self.resolver, product.sku, "product", DETAIL_PLACEHOLDER)

        return ProductDetail(
            sku=product.sku,
            title=product.title,
            description=nh3.clean(product.description or ""),
            style=product.style,
            price=product.price,
            formatted_price=format_price(product.price, product.currency_id),
            currency_format=product.currency_format,
            available_sizes=list(product.available_sizes),
            image_url=url,
            detail_path=detail_path(product.sku),
        )


def detail_path(sku: int | str) -> str:
    return f"/product/{quote(str(sku), safe='')}"
