# storefront/routers/checkout.py
from fastapi import APIRouter, Depends

from storefront.deps import get_cart_session, get_checkout_service
from storefront.schemas.checkout import PaymentCreate, PaymentResponse
from storefront.services.cart_service import CartSession
from storefront.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["Checkout"])


@router.post("/{session_id}", response_model=PaymentResponse)
async def checkout(
    payload: PaymentCreate,
    cart: CartSession = Depends(get_cart_session),
    service: CheckoutService = Depends(get_checkout_service),
):
    """
    Submit the cart for payment.

    - 400 if the cart is empty.
    - Payment failures (after retries) come back in `error` with status 200;
      the cart is kept so the shopper can try again.
    - On success the cart is emptied.
    """
    result = await service.checkout(cart, payload.payment)
    return PaymentResponse(data=result.data, error=result.error)
