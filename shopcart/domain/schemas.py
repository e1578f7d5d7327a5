# shopcart/domain/schemas.py
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shopcart.domain.entities import CartEntry, CartLine, CartView, ProductState, StockLevel
from shopcart.domain.pricing import discount_active, discount_amount, effective_price

CENT = Decimal("0.01")


def money(value: Decimal | None) -> Decimal | None:
    """Presentation rounding, the only place amounts are rounded."""
    if value is None:
        return None
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


# ---- users ----

class UserCreate(BaseModel):
    """Schema for creating a user."""

    id: int = Field(..., gt=0, description="User ID (must be > 0)")
    name: str = Field(..., min_length=1, max_length=100, description="User name")


class UserRead(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


# ---- products / inventory ----

class DiscountIn(BaseModel):
    percentage: Decimal = Field(..., ge=0, le=100)
    start: datetime | None = None
    end: datetime | None = None

    @model_validator(mode="after")
    def check_window(self):
        if self.start and self.end and self.start > self.end:
            raise ValueError("discount start must not be after discount end")
        return self


class SizeIn(BaseModel):
    size: str = Field(..., min_length=1, max_length=20)
    stock: int = Field(0, ge=0)


class ProductCreate(BaseModel):
    """
    Catalog entry. With sizes, total_stock is derived from them;
    without sizes, total_stock is the only stock counter.
    """

    name: str = Field(..., min_length=1, max_length=200)
    base_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    total_stock: int = Field(0, ge=0)
    sizes: List[SizeIn] = Field(default_factory=list)
    discount: DiscountIn | None = None
    is_active: bool = True

    @model_validator(mode="after")
    def derive_total_stock(self):
        labels = [s.size for s in self.sizes]
        if len(labels) != len(set(labels)):
            raise ValueError("size labels must be unique within a product")
        if self.sizes:
            summed = sum(s.stock for s in self.sizes)
            if self.total_stock and self.total_stock != summed:
                raise ValueError("total_stock must equal the sum of size stock")
            self.total_stock = summed
        return self


class SizeOut(BaseModel):
    size: str
    stock: int


class ProductOut(BaseModel):
    id: int
    name: str
    base_price: Decimal
    effective_price: Decimal
    discount_amount: Decimal
    discount_active: bool
    total_stock: int
    in_stock: bool
    is_active: bool
    sizes: List[SizeOut]

    @classmethod
    def from_state(cls, product: ProductState, now: datetime) -> "ProductOut":
        return cls(
            id=product.id,
            name=product.name,
            base_price=money(product.base_price),
            effective_price=money(effective_price(product, now)),
            discount_amount=money(discount_amount(product, now)),
            discount_active=discount_active(product, now),
            total_stock=product.total_stock,
            in_stock=product.total_stock > 0,
            is_active=product.is_active,
            sizes=[SizeOut(size=s.size, stock=s.stock) for s in product.sizes],
        )


class StockChangeIn(BaseModel):
    quantity: int = Field(..., gt=0, description="Units to add or remove (must be > 0)")
    size: str | None = None


class StockOut(BaseModel):
    product_id: int
    total_stock: int
    in_stock: bool
    sizes: List[SizeOut]

    @classmethod
    def from_level(cls, level: StockLevel) -> "StockOut":
        return cls(
            product_id=level.product_id,
            total_stock=level.total_stock,
            in_stock=level.total_stock > 0,
            sizes=[SizeOut(size=s.size, stock=s.stock) for s in level.sizes],
        )


class InStockOut(BaseModel):
    product_id: int
    size: str | None = None
    in_stock: bool


# ---- cart ----

class ItemIn(BaseModel):
    """Schema for adding a product to the cart."""

    product_id: int = Field(..., gt=0, description="Product ID (must be > 0)")
    quantity: int = Field(1, gt=0, description="Quantity (must be > 0)")


class QuantityIn(BaseModel):
    """0 removes the entry."""

    quantity: int = Field(..., ge=0)


class CartEntryOut(BaseModel):
    id: int | None = None
    product_id: int
    quantity: int
    added_at: datetime

    @classmethod
    def from_entry(cls, entry: CartEntry) -> "CartEntryOut":
        return cls(
            id=entry.id,
            product_id=entry.product_id,
            quantity=entry.quantity,
            added_at=entry.added_at,
        )


class AddToCartOut(BaseModel):
    cart_item_count: int
    entries: List[CartEntryOut]


class CartLineOut(BaseModel):
    entry_id: int | None = None
    product_id: int
    name: str | None = None
    quantity: int
    added_at: datetime
    available: bool
    reason: str | None = None
    unit_price: Decimal | None = None
    base_price: Decimal | None = None
    discount_amount: Decimal | None = None
    line_total: Decimal | None = None
    in_stock: bool | None = None

    @classmethod
    def from_line(cls, line: CartLine) -> "CartLineOut":
        return cls(
            entry_id=line.entry_id,
            product_id=line.product_id,
            name=line.name,
            quantity=line.quantity,
            added_at=line.added_at,
            available=line.available,
            reason=line.reason,
            unit_price=money(line.unit_price),
            base_price=money(line.base_price),
            discount_amount=money(line.discount_amount),
            line_total=money(line.line_total),
            in_stock=line.in_stock,
        )


class CartSummaryOut(BaseModel):
    item_count: int
    subtotal: Decimal
    shipping: Decimal
    total: Decimal


class CartViewOut(BaseModel):
    items: List[CartLineOut]
    unavailable: List[CartLineOut]
    summary: CartSummaryOut

    @classmethod
    def from_view(cls, view: CartView) -> "CartViewOut":
        return cls(
            items=[CartLineOut.from_line(line) for line in view.available_lines],
            unavailable=[CartLineOut.from_line(line) for line in view.unavailable],
            summary=CartSummaryOut(
                item_count=view.item_count,
                subtotal=money(view.subtotal),
                shipping=money(view.shipping),
                total=money(view.total),
            ),
        )


class CartCountOut(BaseModel):
    count: int


class OkOut(BaseModel):
    success: bool = True
    message: str
