# shopcart/domain/entities.py
"""
Immutable snapshots of store state handed to the pure domain code.

Nothing here is cached or stored: effective prices, line totals and cart
totals are always recomputed from these structs.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class Discount:
    percentage: Decimal = Decimal("0")
    start: datetime | None = None
    end: datetime | None = None


@dataclass(frozen=True)
class SizeVariant:
    size: str
    stock: int


@dataclass(frozen=True)
class ProductState:
    id: int
    name: str
    base_price: Decimal
    total_stock: int
    is_active: bool = True
    discount: Discount | None = None
    sizes: tuple[SizeVariant, ...] = ()

    def variant(self, size: str) -> SizeVariant | None:
        for v in self.sizes:
            if v.size == size:
                return v
        return None


@dataclass(frozen=True)
class StockLevel:
    product_id: int
    total_stock: int
    sizes: tuple[SizeVariant, ...] = ()


@dataclass(frozen=True)
class CartEntry:
    """One (product, quantity) row of a user's cart. ``id`` is None until committed."""

    product_id: int
    quantity: int
    added_at: datetime
    id: int | None = None


@dataclass(frozen=True)
class CartLine:
    entry_id: int | None
    product_id: int
    quantity: int
    added_at: datetime
    available: bool
    reason: str | None = None
    name: str | None = None
    unit_price: Decimal | None = None
    base_price: Decimal | None = None
    discount_amount: Decimal | None = None
    line_total: Decimal | None = None
    in_stock: bool | None = None


@dataclass(frozen=True)
class CartView:
    lines: tuple[CartLine, ...]
    subtotal: Decimal
    item_count: int
    shipping: Decimal
    total: Decimal
    priced_at: datetime | None = None

    @property
    def unavailable(self) -> tuple[CartLine, ...]:
        return tuple(line for line in self.lines if not line.available)

    @property
    def available_lines(self) -> tuple[CartLine, ...]:
        return tuple(line for line in self.lines if line.available)


@dataclass(frozen=True)
class CartState:
    user_id: int
    version: int
    entries: tuple[CartEntry, ...] = field(default_factory=tuple)
