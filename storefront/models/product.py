# storefront/models/product.py
import math

from pydantic import ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel, Field


class Product(SQLModel):
    """
    Catalog entry as sent by the remote shop API.

    Wire names are camelCase (availableSizes, currencyId, ...);
    snake_case attribute names are accepted too.

    Products are immutable for the session: a fresh fetch replaces the
    whole catalog, nothing patches a product in place.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)

    sku: int | str
    id: int | str | None = None
    title: str
    description: str | None = None
    style: str | None = None
    image_url: str | None = None
    price: float = Field(ge=0)
    currency_id: str = "USD"
    currency_format: str = "$"
    available_sizes: tuple[str, ...] = ()
    installments: int = Field(default=0, ge=0)
    is_free_shipping: bool = False

    @field_validator("title")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty")
        return v

    @field_validator("sku")
    @classmethod
    def valid_sku(cls, v: int | str) -> int | str:
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("sku cannot be empty")
        return v

    @field_validator("price")
    @classmethod
    def finite_price(cls, v: float) -> float:
        # 1e999 in a JSON body decodes to inf
        if not math.isfinite(v):
            raise ValueError("price must be a finite number")
        return v

    @field_validator("installments", mode="before")
    @classmethod
    def missing_installments(cls, v):
        return 0 if v is None else v


class FilterCriteria(SQLModel):
    """
    Catalog filter chosen by the shopper.

    - sizes: every listed size must be available (empty = no constraint)
    - max_price: inclusive upper bound (None = unbounded)
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    sizes: tuple[str, ...] = ()
    max_price: float | None = None


def same_sku(a: int | str, b: int | str) -> bool:
    """Identities compare by their string form, so 1 and "1" are the same product."""
    return str(a) == str(b)
