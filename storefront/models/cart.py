# storefront/models/cart.py
from sqlmodel import SQLModel, Field

from storefront.models.product import Product, same_sku

INVALID_PRODUCT_MESSAGE = "Invalid product data."


class CartLineItem(Product):
    """
    A product paired with a quantity inside a cart.
    Quantity is always >= 1; an item that would drop to 0 is removed instead.
    """

    quantity: int = Field(default=1, ge=1)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity


class CartSnapshot(SQLModel):
    """
    Complete cart state at one instant.

    Snapshots are never modified: every cart operation builds a new one.
    Line items that did not change are shared with the previous snapshot.
    Totals are derived from the items on each access, not stored.
    """

    items: tuple[CartLineItem, ...] = ()

    def find(self, sku: int | str) -> CartLineItem | None:
        for item in self.items:
            if same_sku(item.sku, sku):
                return item
        return None

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_price(self) -> float:
        return sum((item.line_total for item in self.items), 0.0)

    @property
    def is_empty(self) -> bool:
        return not self.items


class InvalidProduct(SQLModel):
    """
    Sentinel returned when a caller hands the cart something that is not a
    usable product (None, missing sku/title, bad field types).
    """

    message: str = INVALID_PRODUCT_MESSAGE
    reason: str
