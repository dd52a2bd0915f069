# storefront/schemas/product.py
from sqlmodel import SQLModel


class InstallmentRead(SQLModel):
    """
    Split pricing shown under the card price ("or 3 x $4.33").
    """

    count: int
    price: float
    formatted_price: str


class ProductCard(SQLModel):
    """
    Product representation for the catalog shelf.

    formatted_price is split into whole / cents the way the card renders it.
    """

    sku: int | str
    title: str
    price: float
    currency_id: str
    currency_format: str
    formatted_price: str
    price_whole: str
    price_cents: str
    available_sizes: list[str]
    installment: InstallmentRead | None = None
    is_free_shipping: bool
    image_url: str


class ProductDetail(SQLModel):
    """
    Single product view.

    image_url is only passed through when it looks like a real image url,
    otherwise the placeholder is used.
    """

    sku: int | str
    title: str
    description: str
    style: str | None = None
    price: float
    formatted_price: str
    currency_format: str
    available_sizes: list[str]
    image_url: str
    detail_path: str


class ProductListResponse(SQLModel):
    """
    Result of a catalog fetch + filter.

    Exactly one of data / error is set; loading is always False.
    """

    data: list[ProductCard] | None = None
    error: str | None = None
    loading: bool = False
    total: int = 0
