# storefront/schemas/cart.py
import uuid

from sqlmodel import SQLModel


class CartItemRead(SQLModel):
    """
    Read model for a single cart line item, including line_total.
    """

    sku: int | str
    title: str
    style: str | None = None
    size: str | None = None
    quantity: int
    price: float
    formatted_price: str
    line_total: float
    currency_id: str
    currency_format: str
    image_url: str


class CartSummary(SQLModel):
    """
    Full cart response model with totals.
    """

    session_id: uuid.UUID
    is_open: bool
    items: list[CartItemRead]
    total_quantity: int
    total_price: float
    formatted_total: str
    currency_format: str
