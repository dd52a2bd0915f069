# storefront/services/cart_service.py
import logging
import threading
import uuid
from collections import OrderedDict
from collections.abc import Callable, Mapping
from typing import Any

from storefront.core.assets import FALLBACK_IMAGE, AssetResolver, image_url
from storefront.core.money import format_price
from storefront.models.cart import CartSnapshot, InvalidProduct
from storefront.models.product import Product
from storefront.schemas.cart import CartItemRead, CartSummary
from storefront.services import cart_engine

logger = logging.getLogger(__name__)


class CartSession:
    """
    State holder for one shopper's cart.

    Responsibilities:
      - own the current CartSnapshot (callers only ever read it)
      - route every mutation through the pure engine operations
      - commit each new snapshot atomically, so a dispatch always builds
        from the most recently committed snapshot
      - keep the open/closed view flag of the cart drawer
    """

    def __init__(self, session_id: uuid.UUID | None = None):
        self.id = session_id or uuid.uuid4()
        self.is_open = False
        self._snapshot = cart_engine.EMPTY_CART
        self._lock = threading.Lock()

    # ---- read side ----

    @property
    def snapshot(self) -> CartSnapshot:
        return self._snapshot

    @property
    def total_price(self) -> float:
        return self._snapshot.total_price

    @property
    def total_quantity(self) -> int:
        return self._snapshot.total_quantity

    # ---- view toggles ----

    def open_cart(self) -> None:
        self.is_open = True

    def close_cart(self) -> None:
        self.is_open = False

    # ---- mutations ----

    def _dispatch(self, operation: Callable[[CartSnapshot], Any]) -> Any:
        with self._lock:
            result = operation(self._snapshot)
            if isinstance(result, CartSnapshot):
                self._snapshot = result
            return result

    def add_product(self, product: Product | Mapping[str, Any] | None) -> CartSnapshot | InvalidProduct:
        """
        Add one unit of a product.

        Returns the new snapshot, or InvalidProduct (the cart is left as is).
        """
        result = self._dispatch(lambda snap: cart_engine.add_product(snap, product))
        if isinstance(result, InvalidProduct):
            logger.info("Cart %s rejected product: %s", self.id, result.reason)
        return result

    def increase_quantity(self, sku: int | str) -> CartSnapshot:
        return self._dispatch(lambda snap: cart_engine.increase_quantity(snap, sku))

    def decrease_quantity(self, sku: int | str) -> CartSnapshot:
        return self._dispatch(lambda snap: cart_engine.decrease_quantity(snap, sku))

    def remove_product(self, sku: int | str) -> CartSnapshot:
        return self._dispatch(lambda snap: cart_engine.remove_product(snap, sku))

    def clear(self, expected: CartSnapshot | None = None) -> CartSnapshot:
        """
        Empty the cart.

        With `expected`, the cart is only emptied if it still is that exact
        snapshot (nothing was added or changed in the meantime).
        """

        def _clear(snap: CartSnapshot) -> CartSnapshot:
            if expected is not None and snap is not expected:
                return snap
            return cart_engine.EMPTY_CART

        return self._dispatch(_clear)


MAX_SESSIONS = 10_000


class CartSessionRegistry:
    """
    Live cart sessions for one running application.

    Created on application startup (lifespan) and emptied on shutdown.

    Holds at most `max_sessions` carts. Starting one more ends the session
    that was least recently used (created or looked up).
    """

    def __init__(self, max_sessions: int = MAX_SESSIONS):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[uuid.UUID, CartSession] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> CartSession:
        session = CartSession()
        with self._lock:
            self._sessions[session.id] = session
            evicted = []
            while len(self._sessions) > self.max_sessions:
                evicted.append(self._sessions.popitem(last=False)[0])
        for session_id in evicted:
            logger.warning("Cart session %s ended: session limit (%s) reached", session_id, self.max_sessions)
        logger.info("Cart session %s started", session.id)
        return session

    def get(self, session_id: uuid.UUID) -> CartSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
        return session

    def close(self, session_id: uuid.UUID) -> bool:
        """End a session. Returns False if it did not exist."""
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info("Cart session %s ended", session_id)
        return True

    def close_all(self) -> None:
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
        logger.info("Closed %s cart session(s)", count)


def build_cart_summary(
    session: CartSession,
    resolver: AssetResolver,
    fallback_image: str = FALLBACK_IMAGE,
) -> CartSummary:
    """
    Compose CartSummary from the session's current snapshot.

    The snapshot is read once so items and totals always agree.
    """
    snapshot = session.snapshot

    items = [
        CartItemRead(
            sku=it.sku,
            title=it.title,
            style=it.style,
            size=it.available_sizes[0] if it.available_sizes else None,
            quantity=it.quantity,
            price=it.price,
            formatted_price=format_price(it.price, it.currency_id),
            line_total=it.line_total,
            currency_id=it.currency_id,
            currency_format=it.currency_format,
            image_url=image_url(resolver, it.sku, "cart", fallback_image),
        )
        for it in snapshot.items
    ]

    # Carts are single-currency in practice; the first item sets the symbol
    currency_id = snapshot.items[0].currency_id if snapshot.items else "USD"
    currency_format = snapshot.items[0].currency_format if snapshot.items else "$"

    return CartSummary(
        session_id=session.id,
        is_open=session.is_open,
        items=items,
        total_quantity=snapshot.total_quantity,
        total_price=snapshot.total_price,
        formatted_total=format_price(snapshot.total_price, currency_id),
        currency_format=currency_format,
    )
