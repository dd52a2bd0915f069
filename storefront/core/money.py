# storefront/core/money.py
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")

# Currencies written with a decimal comma, e.g. 1.234,56
COMMA_DECIMAL_CURRENCIES = {"BRL", "EUR", "ARS", "CLP", "COP", "DKK", "NOK", "SEK", "TRY", "VND"}


def _to_decimal(amount) -> Decimal:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        return Decimal(0)
    if not value.is_finite():
        return Decimal(0)
    return value


def format_price(amount: float | int | Decimal, currency_id: str | None) -> str:
    """
    Format an amount with two decimals for display next to a currency symbol.

    Examples:
        format_price(1234.5, "USD") -> "1,234.50"
        format_price(1234.5, "BRL") -> "1.234,50"

    Never fails: anything that is not a finite number formats as zero.
    """
    value = _to_decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)
    text = f"{value:,.2f}"

    if (currency_id or "").strip().upper() in COMMA_DECIMAL_CURRENCIES:
        text = text.translate(str.maketrans({",": ".", ".": ","}))
    return text


def split_price(formatted: str) -> tuple[str, str]:
    """
    Split a formatted price into its whole part and its cents part
    (separator included), the way the product card renders them.
    """
    return formatted[:-3], formatted[-3:]


def installment_price(price: float, installments: int | None) -> float | None:
    """Price of a single installment, or None when the product has no split pricing."""
    if not installments or installments <= 0:
        return None
    return price / installments
