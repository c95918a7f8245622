"""Discount calculation for variant pricing.

priceOff is derived from originalPrice and price whenever both are present.
Unparseable or non-discount inputs fall back to "0%" instead of raising.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

NO_DISCOUNT = "0%"

_CENTS = Decimal("0.01")
_WHOLE = Decimal("1")


def to_decimal(value: object) -> Decimal | None:
    """Parse a price-like value into a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount


def to_money(value: object) -> Decimal | None:
    """Parse a monetary amount, rounded half-up to cents."""
    amount = to_decimal(value)
    if amount is None:
        return None
    try:
        return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More digits than the decimal context holds
        return None


def calculate_discount(original_price: object, sale_price: object) -> str:
    """Return the percentage off as "<int>%".

    Args:
        original_price: Price before discount.
        sale_price: Price the variant is sold at.

    Returns:
        Rounded (half-up) percentage string, "0%" when there is no valid discount.

    Example:
        >>> calculate_discount("100", "80")
        '20%'
    """
    original = to_decimal(original_price)
    sale = to_decimal(sale_price)

    if original is None or sale is None:
        return NO_DISCOUNT
    if original <= 0 or sale <= 0 or sale >= original:
        return NO_DISCOUNT

    percentage = (original - sale) / original * 100
    return f"{percentage.quantize(_WHOLE, rounding=ROUND_HALF_UP)}%"
