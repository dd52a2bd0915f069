# storefront/services/cart_engine.py
"""
Pure cart operations.

Every operation takes the current snapshot plus an input and returns a
brand new snapshot. Nothing here assigns to an existing snapshot, its
items tuple, a line item or the product argument, so whoever still holds
an older snapshot keeps a stable, consistent view of it.

Operations never raise:
  - unknown skus are no-ops (the same snapshot comes back)
  - a structurally invalid product yields the InvalidProduct sentinel
"""
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from storefront.models.cart import CartLineItem, CartSnapshot, InvalidProduct
from storefront.models.product import Product, same_sku

EMPTY_CART = CartSnapshot()


def coerce_product(product: Product | Mapping[str, Any] | None) -> Product | InvalidProduct:
    """
    Accept a Product or a raw mapping (e.g. a JSON body) and return a
    validated Product, or the InvalidProduct sentinel.
    """
    if product is None:
        return InvalidProduct(reason="no product given")

    if isinstance(product, Product):
        return product

    if not isinstance(product, Mapping):
        return InvalidProduct(reason=f"unsupported product type {type(product).__name__}")

    if product.get("sku") in (None, "") or not product.get("title"):
        return InvalidProduct(reason="product is missing sku or title")

    try:
        return Product.model_validate(dict(product))
    except ValidationError as e:
        return InvalidProduct(reason=str(e))


def _new_line_item(product: Product) -> CartLineItem:
    data = product.model_dump(by_alias=True, exclude={"quantity"})
    data["quantity"] = 1
    return CartLineItem.model_validate(data)


def _with_quantity(item: CartLineItem, quantity: int) -> CartLineItem:
    data = item.model_dump(by_alias=True)
    data["quantity"] = quantity
    return CartLineItem.model_validate(data)


def _adjust(snapshot: CartSnapshot, sku: int | str, delta: int) -> CartSnapshot:
    if snapshot.find(sku) is None:
        return snapshot

    items: list[CartLineItem] = []
    for item in snapshot.items:
        if not same_sku(item.sku, sku):
            items.append(item)
            continue
        quantity = item.quantity + delta
        if quantity >= 1:
            items.append(_with_quantity(item, quantity))
        # quantity 0 drops the line item entirely
    return CartSnapshot(items=tuple(items))


def add_product(
    snapshot: CartSnapshot,
    product: Product | Mapping[str, Any] | None,
) -> CartSnapshot | InvalidProduct:
    """
    Add one unit of a product.

    - already in the cart => that line item's quantity + 1
    - otherwise => new line item appended with quantity 1

    Any quantity carried by the input is ignored.
    """
    valid = coerce_product(product)
    if isinstance(valid, InvalidProduct):
        return valid

    if snapshot.find(valid.sku) is not None:
        return _adjust(snapshot, valid.sku, +1)

    return CartSnapshot(items=snapshot.items + (_new_line_item(valid),))


def increase_quantity(snapshot: CartSnapshot, sku: int | str) -> CartSnapshot:
    return _adjust(snapshot, sku, +1)


def decrease_quantity(snapshot: CartSnapshot, sku: int | str) -> CartSnapshot:
    """Quantity - 1; an item at quantity 1 is removed rather than kept at 0."""
    return _adjust(snapshot, sku, -1)


def remove_product(snapshot: CartSnapshot, sku: int | str) -> CartSnapshot:
    if snapshot.find(sku) is None:
        return snapshot
    return CartSnapshot(
        items=tuple(item for item in snapshot.items if not same_sku(item.sku, sku))
    )


def total_price(snapshot: CartSnapshot) -> float:
    return snapshot.total_price


def total_quantity(snapshot: CartSnapshot) -> int:
    return snapshot.total_quantity
