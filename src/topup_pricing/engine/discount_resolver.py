"""
Discount Resolver - Storewide promotional pricing for product variants.

A product's storewide discount applies to every one of its currency
packages while it is switched on and the current time falls inside its
optional start/end window.
"""
from datetime import datetime, timezone
from typing import Optional, Union

from .models import Product, Variant, StorewideDiscount


def to_utc(value: Union[datetime, str, None]) -> Optional[datetime]:
    """
    Normalise a timestamp to an aware UTC datetime.
    
    Naive datetimes are taken to be UTC. ISO strings (as returned by the
    hosted store, possibly with a trailing "Z") are parsed first.
    """
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_discount_active(discount: StorewideDiscount, now: Optional[datetime] = None) -> bool:
    """Check the active flag and the start/end window against `now`."""
    if not discount.active:
        return False
    
    now = to_utc(now) or datetime.now(timezone.utc)
    start = to_utc(discount.start)
    end = to_utc(discount.end)
    
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


def is_on_discount(product: Product, now: Optional[datetime] = None) -> bool:
    """True when the storewide discount currently changes the product's prices."""
    return (
        product.discount.percentage is not None
        and is_discount_active(product.discount, now)
    )


def apply_percentage(price: float, percentage: float) -> float:
    """Mark a price down by a percentage (0-100)."""
    return price * (1 - float(percentage) / 100.0)


def resolve_effective_price(product: Product, variant: Variant, now: Optional[datetime] = None) -> float:
    """
    Resolve the buyer-facing price of a variant before any per-buyer override.
    
    Percentages are validated when the product is saved, so no clamping
    happens here.
    """
    if is_on_discount(product, now):
        return apply_percentage(variant.price, product.discount.percentage)
    return variant.price
