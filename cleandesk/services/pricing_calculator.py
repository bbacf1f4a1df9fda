"""
Pricing calculator

Derives subtotal, discount, tax, total and deposit from line items at read time.
Derived amounts are never stored, so every surface (invoice list, invoice detail,
creation preview, estimates, jobs) computes them here from the same inputs.

Leniency policy: values that cannot be read as numbers count as 0 and negative
inputs are clamped to 0. Magnitudes of 10^15 and above are treated the same
way since no stored amount can reach them. This keeps pages rendering on
corrupt legacy rows; anything that persists money must validate before calling in.
"""

from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict

from ..config import DEFAULT_CURRENCY, DEFAULT_TAX_RATE

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO_PLACES = Decimal("0.01")

# Inputs at or above 10^MAX_EXPONENT are unreadable. Products and percentages of
# bounded inputs stay far below MONEY_CONTEXT's precision, so quantize never fails.
MAX_EXPONENT = 15
MONEY_CONTEXT = Context(prec=100, rounding=ROUND_HALF_UP)

DISCOUNT_TYPES = {"percentage", "fixed"}
DEPOSIT_TYPES = {"percentage", "fixed"}


class PricingBreakdown(BaseModel):
    """Complete pricing breakdown, every monetary field rounded to cents"""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    tax_rate_percent: Decimal
    tax_amount: Decimal
    discount_type: Optional[str] = None
    discount_value: Optional[Decimal] = None
    discount_amount: Decimal = ZERO
    total: Decimal
    deposit_required: bool = False
    deposit_type: Optional[str] = None
    deposit_value: Optional[Decimal] = None
    deposit_amount: Decimal = ZERO


def to_decimal(value: Any) -> Decimal:
    """Coerce numbers, numeric strings and Decimals; anything else is 0"""
    if isinstance(value, Decimal):
        result = value
    else:
        if value is None or isinstance(value, bool):
            return ZERO
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            return ZERO
    if not result.is_finite() or (result and result.adjusted() >= MAX_EXPONENT):
        return ZERO
    return result


def non_negative(value: Any) -> Decimal:
    result = to_decimal(value)
    return result if result > ZERO else ZERO


def money(value: Any) -> Decimal:
    """Round to cents, half-up"""
    # Computed intermediates may exceed MAX_EXPONENT, so Decimals are only bounded
    # by what MONEY_CONTEXT can quantize
    result = value if isinstance(value, Decimal) else to_decimal(value)
    if not result.is_finite() or (result and result.adjusted() >= MONEY_CONTEXT.prec - 2):
        return ZERO.quantize(TWO_PLACES)
    return result.quantize(TWO_PLACES, rounding=ROUND_HALF_UP, context=MONEY_CONTEXT)


def _item_field(item: Any, *names: str) -> Any:
    for name in names:
        if isinstance(item, dict):
            if name in item:
                return item[name]
        elif hasattr(item, name):
            return getattr(item, name)
    return None


def calculate_line_items_total(line_items: Iterable[Any]) -> Decimal:
    """
    Sum quantity * unit price over all items (unrounded).
    A precomputed `total` on the item is ignored.
    """
    subtotal = ZERO
    for item in line_items or []:
        quantity = non_negative(_item_field(item, "quantity", "qty"))
        unit_price = non_negative(_item_field(item, "unit_price", "unitPrice"))
        subtotal += quantity * unit_price
    return subtotal


def calculate_tax(subtotal: Any, tax_rate: Any) -> Decimal:
    return to_decimal(subtotal) * non_negative(tax_rate) / HUNDRED


def calculate_discount(
    subtotal: Any, discount_type: Optional[str] = None, discount_value: Any = None
) -> Decimal:
    """Percentage or fixed discount, never more than the subtotal"""
    subtotal = non_negative(subtotal)
    value = non_negative(discount_value)
    if not discount_type or not value:
        return ZERO

    if discount_type == "percentage":
        discount = subtotal * value / HUNDRED
    elif discount_type == "fixed":
        discount = value
    else:
        return ZERO

    return min(discount, subtotal)


def calculate_deposit(
    total: Any, deposit_type: Optional[str] = None, deposit_value: Any = None
) -> Decimal:
    value = non_negative(deposit_value)
    if not deposit_type or not value:
        return ZERO

    if deposit_type == "percentage":
        return non_negative(total) * value / HUNDRED
    if deposit_type == "fixed":
        return value
    return ZERO


def calculate_full_pricing(
    line_items: Iterable[Any],
    tax_rate: Any = DEFAULT_TAX_RATE,
    discount_type: Optional[str] = None,
    discount_value: Any = None,
    deposit_required: bool = False,
    deposit_type: Optional[str] = None,
    deposit_value: Any = None,
) -> PricingBreakdown:
    """
    Complete pricing breakdown from line items and pricing settings.

    Tax is charged on the discounted subtotal. Each component is rounded once,
    from unrounded intermediates, and the total is assembled from the rounded
    components so that total == subtotal - discount + tax holds to the cent.
    """
    rate = non_negative(tax_rate)
    with localcontext(MONEY_CONTEXT):
        raw_subtotal = calculate_line_items_total(line_items)
        raw_discount = calculate_discount(raw_subtotal, discount_type, discount_value)
        raw_tax = calculate_tax(raw_subtotal - raw_discount, rate)

        subtotal = money(raw_subtotal)
        discount_amount = money(raw_discount)
        tax_amount = money(raw_tax)
        total = subtotal - discount_amount + tax_amount

        deposit_amount = ZERO
        if deposit_required:
            deposit_amount = money(calculate_deposit(total, deposit_type, deposit_value))

    return PricingBreakdown(
        subtotal=subtotal,
        tax_rate_percent=rate,
        tax_amount=tax_amount,
        discount_type=discount_type if discount_type in DISCOUNT_TYPES else None,
        discount_value=non_negative(discount_value) if discount_value is not None else None,
        discount_amount=discount_amount,
        total=total,
        deposit_required=bool(deposit_required),
        deposit_type=deposit_type if deposit_type in DEPOSIT_TYPES else None,
        deposit_value=non_negative(deposit_value) if deposit_value is not None else None,
        deposit_amount=deposit_amount,
    )


def compute_pricing(line_items: Iterable[Any], tax_rate_percent: Any) -> PricingBreakdown:
    """Subtotal, tax and total for invoice line items (no discount or deposit)"""
    return calculate_full_pricing(line_items, tax_rate=tax_rate_percent)


def format_currency(amount: Any, currency: str = DEFAULT_CURRENCY) -> str:
    value = money(amount)
    sign = "-" if value < ZERO else ""
    symbol = "$" if currency in ("USD", "CAD") else f"{currency} "
    return f"{sign}{symbol}{abs(value):,.2f}"
