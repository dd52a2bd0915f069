# storefront/services/checkout_service.py
import logging
from typing import Any

from fastapi import HTTPException, status

from storefront.core.api_client import FetchResult, ResilientFetcher
from storefront.models.cart import CartSnapshot
from storefront.services.cart_service import CartSession

logger = logging.getLogger(__name__)


class CheckoutService:
    """
    Business logic for checkout.

    Responsibilities:
      - refuse to check out an empty cart
      - build the payment payload from the cart snapshot
      - submit it through the resilient fetcher
      - clear the cart once the payment endpoint accepts it
    """

    def __init__(self, fetcher: ResilientFetcher):
        self.fetcher = fetcher

    @staticmethod
    def build_payment_payload(snapshot: CartSnapshot, payment: dict[str, Any]) -> dict[str, Any]:
        """
        Payment request body:
          - items: sku, quantity and unit price per line item
          - total: derived cart total
          - currencyId: taken from the first line item
          - payment: caller-supplied details, passed through untouched
        """
        return {
            "items": [
                {"sku": it.sku, "quantity": it.quantity, "price": it.price}
                for it in snapshot.items
            ],
            "total": round(snapshot.total_price, 2),
            "currencyId": snapshot.items[0].currency_id if snapshot.items else None,
            "payment": payment,
        }

    async def checkout(self, session: CartSession, payment: dict[str, Any]) -> FetchResult[Any]:
        snapshot = session.snapshot
        if snapshot.is_empty:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cart is empty",
            )

        result = await self.fetcher.process_payment(self.build_payment_payload(snapshot, payment))

        if result.ok:
            # Changes made while the payment was in flight stay in the cart
            session.clear(expected=snapshot)
            logger.info("Cart %s checked out (%s item(s))", session.id, snapshot.total_quantity)
        else:
            logger.warning("Checkout failed for cart %s: %s", session.id, result.error)

        return result
