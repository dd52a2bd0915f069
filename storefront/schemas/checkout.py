# storefront/schemas/checkout.py
from typing import Any

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field


class PaymentCreate(SQLModel):
    """
    Payload for starting checkout of the current cart.

    `payment` is forwarded as-is to the payment endpoint (card token,
    wallet id, ...); the storefront does not look inside it.
    """

    model_config = ConfigDict(extra="forbid")

    payment: dict[str, Any] = Field(default_factory=dict)


class PaymentResponse(SQLModel):
    """
    Outcome of a payment submission.

    Exactly one of data / error is set; loading is always False.
    """

    data: Any | None = None
    error: str | None = None
    loading: bool = False
