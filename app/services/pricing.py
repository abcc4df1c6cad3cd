"""
Order Pricing

Exact decimal arithmetic for order totals:

    subtotal       = Σ unit_price × quantity
    service_charge = subtotal × SERVICE_CHARGE_RATE   (dine-in only)
    total_price    = subtotal + service_charge + extra_charges

Nothing here rounds. Amounts are rounded to cents only when they are
rendered (``round_money`` / ``format_price``).

Author: Khalil Bannouri
Version: 4.0.0
"""

from dataclasses import dataclass
from contextlib import AbstractContextManager
from decimal import Context, Decimal, Inexact, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Iterable

from app.models import PickupType

SERVICE_CHARGE_RATE = Decimal("0.10")
MONEY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0")

# Upper bounds on caller-supplied amounts
MAX_UNIT_PRICE = Decimal("1000000")
MAX_QUANTITY = 10_000
MAX_EXTRA_CHARGES = Decimal("1000000")

# Digits kept by order arithmetic; bounded amounts never need more
MONEY_PRECISION = 100


def money_context(strict: bool = False) -> AbstractContextManager:
    """
    Decimal context for order arithmetic.

    With ``strict`` any rounding raises ``decimal.Inexact`` instead of
    silently dropping digits.
    """
    ctx = Context(prec=MONEY_PRECISION, rounding=ROUND_HALF_UP)
    if strict:
        ctx.traps[Inexact] = True
    return localcontext(ctx)


def to_decimal(value: Any) -> Decimal:
    """
    Convert a raw numeric value to Decimal without binary float noise.

    Floats go through ``str`` so 12.99 becomes Decimal("12.99").

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    elif isinstance(value, str):
        try:
            amount = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"Not a number: {value!r}")
    else:
        raise ValueError(f"Not a number: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return amount


def parse_extra_charges(value: Any) -> Decimal:
    """
    Parse the optional extra charges field.

    Absent or non-numeric values count as zero. A negative number is a
    caller error.

    Raises:
        ValueError: If the value is negative or above MAX_EXTRA_CHARGES
    """
    if value is None:
        return ZERO
    try:
        amount = to_decimal(value)
    except ValueError:
        return ZERO
    if amount < 0:
        raise ValueError("Extra charges must be a valid positive number")
    if amount > MAX_EXTRA_CHARGES:
        raise ValueError(f"Extra charges cannot exceed {MAX_EXTRA_CHARGES:,}")
    return amount


@dataclass(frozen=True)
class PriceBreakdown:
    """
    Components of an order's price.

    Attributes:
        subtotal: Sum of line totals
        service_charge: Dine-in surcharge (zero for take-out)
        extra_charges: Caller-supplied extra amount
        total: subtotal + service_charge + extra_charges
    """
    subtotal: Decimal
    service_charge: Decimal
    extra_charges: Decimal
    total: Decimal


def calculate_subtotal(items: Iterable[Any]) -> Decimal:
    """Sum unit_price × quantity over the items."""
    return sum((item.unit_price * item.quantity for item in items), ZERO)


def calculate_service_charge(
    subtotal: Decimal,
    pickup_type: PickupType,
    rate: Decimal = SERVICE_CHARGE_RATE,
) -> Decimal:
    """Service charge applies to dine-in orders only."""
    if pickup_type == PickupType.DINE_IN:
        return subtotal * rate
    return ZERO


def price_order(
    items: Iterable[Any],
    pickup_type: PickupType,
    extra_charges: Decimal = ZERO,
    rate: Decimal = SERVICE_CHARGE_RATE,
) -> PriceBreakdown:
    """
    Price a set of retained order items.

    Raises:
        decimal.Inexact: If an exact result needs more than MONEY_PRECISION digits
    """
    with money_context(strict=True):
        subtotal = calculate_subtotal(items)
        service_charge = calculate_service_charge(subtotal, pickup_type, rate)
        return PriceBreakdown(
            subtotal=subtotal,
            service_charge=service_charge,
            extra_charges=extra_charges,
            total=subtotal + service_charge + extra_charges,
        )


def round_money(amount: Decimal) -> Decimal:
    """Round half-up to cents."""
    return Decimal(amount).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def format_price(amount: Decimal) -> str:
    """
    Format an amount for display.

    Example:
        >>> format_price(Decimal("40.467"))
        '$40.47'
    """
    return f"${round_money(amount):,.2f}"
