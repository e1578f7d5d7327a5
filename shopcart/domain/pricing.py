# shopcart/domain/pricing.py
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from shopcart.domain.entities import ProductState
from shopcart.utils.settings import SHIPPING_FLAT_FEE, SHIPPING_FREE_THRESHOLD

_HUNDRED = Decimal("100")


def as_utc(value: datetime | None) -> datetime | None:
    #sqlite drops tzinfo, everything we store is UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def discount_active(product: ProductState, now: datetime) -> bool:
    discount = product.discount
    if discount is None or discount.percentage <= 0:
        return False
    now = as_utc(now)
    start, end = as_utc(discount.start), as_utc(discount.end)
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


def effective_price(product: ProductState, now: datetime) -> Decimal:
    """Discounted unit price at ``now``; the base price when no discount window is open."""
    if not discount_active(product, now):
        return product.base_price
    return product.base_price * (1 - product.discount.percentage / _HUNDRED)


def discount_amount(product: ProductState, now: datetime) -> Decimal:
    return product.base_price - effective_price(product, now)


@dataclass(frozen=True)
class ShippingPolicy:
    """Flat fee below the free-shipping threshold, free strictly above it."""

    free_threshold: Decimal = SHIPPING_FREE_THRESHOLD
    flat_fee: Decimal = SHIPPING_FLAT_FEE

    def __call__(self, subtotal: Decimal) -> Decimal:
        if subtotal > self.free_threshold:
            return Decimal("0")
        return self.flat_fee
