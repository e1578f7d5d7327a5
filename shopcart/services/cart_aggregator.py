# shopcart/services/cart_aggregator.py
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping

from shopcart.domain.entities import CartEntry, CartLine, CartView, ProductState
from shopcart.domain.pricing import ShippingPolicy, discount_amount, effective_price

UNAVAILABLE_NOT_FOUND = "not_found"
UNAVAILABLE_INACTIVE = "inactive"


def price_line(entry: CartEntry, product: ProductState | None, now: datetime) -> CartLine:
    if product is None or not product.is_active:
        return CartLine(
            entry_id=entry.id,
            product_id=entry.product_id,
            quantity=entry.quantity,
            added_at=entry.added_at,
            available=False,
            reason=UNAVAILABLE_NOT_FOUND if product is None else UNAVAILABLE_INACTIVE,
            name=product.name if product is not None else None,
        )

    unit_price = effective_price(product, now)
    return CartLine(
        entry_id=entry.id,
        product_id=entry.product_id,
        quantity=entry.quantity,
        added_at=entry.added_at,
        available=True,
        name=product.name,
        unit_price=unit_price,
        base_price=product.base_price,
        discount_amount=discount_amount(product, now),
        line_total=unit_price * entry.quantity,
        in_stock=product.total_stock > 0,
    )


def price_cart(
    entries: Iterable[CartEntry],
    products: Mapping[int, ProductState],
    now: datetime,
    shipping_policy: ShippingPolicy | None = None,
) -> CartView:
    """
    Join cart entries with live product state.

    Missing or deactivated products become unavailable lines: reported, left out
    of the totals, never an error. Amounts are not rounded here.
    """
    policy = shipping_policy or ShippingPolicy()

    lines = tuple(price_line(e, products.get(e.product_id), now) for e in entries)
    available = [line for line in lines if line.available]

    subtotal = sum((line.line_total for line in available), Decimal("0"))
    item_count = sum(line.quantity for line in available)
    shipping = policy(subtotal)

    return CartView(
        lines=lines,
        subtotal=subtotal,
        item_count=item_count,
        shipping=shipping,
        total=subtotal + shipping,
        priced_at=now,
    )
