"""
Upsell / Order Ledger

Original-order snapshot, new-order bookkeeping and revenue deltas. These
functions mutate a Call in place and never touch the session or the status;
workflow.actions owns persistence and transitions.
"""

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from db.models import Call, Product
from errors import ValidationError

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

Number = Union[Decimal, int, float, str]


def to_money(value: Number) -> Decimal:
    """Convert to a cent-quantized Decimal. Floats go through str() first."""
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise ValueError("amount must be finite")
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except (ArithmeticError, TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid amount: {value!r}", ["price"]) from exc


def compute_revenue(original_price: Number, new_price: Number) -> Decimal:
    """Revenue delta of an upsell: new minus original."""
    return to_money(new_price) - to_money(original_price)


def resolve_upsell_price(
    product: Optional[Product],
    manual_price: Optional[Number] = None,
) -> Decimal:
    """
    Pick the price for an upsell.

    A manual override wins over the catalog price. Raises ValidationError
    when neither is available or the result is negative.
    """
    if manual_price is not None:
        price = to_money(manual_price)
    elif product is not None:
        price = to_money(product.price)
    else:
        raise ValidationError(
            "Unknown product SKU; a manual price is required", ["new_price"]
        )
    if price < 0:
        raise ValidationError("Price must not be negative", ["new_price"])
    return price


def apply_upsell(
    call: Call, new_sku: str, new_price: Number, now: Optional[datetime] = None
) -> Call:
    """
    Record an accepted upsell on the call.

    Mutates the call in place:
    - snapshots order_sku/current_price as the original order, first time only
    - sets the latest order and new order to new_sku/new_price
    - revenue = new_price - original_price, is_upsell = True
    - ordered_at = now

    Status is left alone so an agent can place several orders in one call.
    """
    if not new_sku or not new_sku.strip():
        raise ValidationError("New order SKU is required", ["new_order_sku"])
    price = to_money(new_price)

    if call.original_order_sku is None:
        call.original_order_sku = call.order_sku
        call.original_price = to_money(call.current_price)

    call.order_sku = new_sku.strip()
    call.current_price = price
    call.new_order_sku = call.order_sku
    call.new_price = price
    call.revenue = compute_revenue(call.original_price, price)
    call.is_upsell = True
    call.order_confirmed = True
    call.ordered_at = now or datetime.now()

    logger.debug(
        "Upsell on call %s: %s@%s -> %s@%s (revenue %s)",
        call.id, call.original_order_sku, call.original_price,
        call.new_order_sku, call.new_price, call.revenue,
    )
    return call


def confirm_order(call: Call, now: Optional[datetime] = None) -> Call:
    """Mark the current order as placed without changing any price field."""
    call.order_confirmed = True
    call.ordered_at = now or datetime.now()
    return call


def decline_upsell(call: Call, now: Optional[datetime] = None) -> Call:
    """Customer kept the original order. Price fields are left untouched."""
    return confirm_order(call, now)


def clear_order(call: Call) -> Call:
    """
    Roll the call back to its pre-upsell order (used by Undo).

    Restores the original snapshot if one exists, then clears the ledger.
    """
    if call.original_order_sku is not None:
        call.order_sku = call.original_order_sku
        call.current_price = call.original_price
    call.original_order_sku = None
    call.original_price = None
    call.new_order_sku = None
    call.new_price = None
    call.revenue = None
    call.is_upsell = False
    call.order_confirmed = False
    call.ordered_at = None
    return call
