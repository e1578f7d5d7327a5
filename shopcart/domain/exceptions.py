"""Shop error taxonomy.

Every error raised by the core carries a stable ``code`` and an HTTP status so
the routers can surface it without guessing:

    try:
        svc.add_to_cart(user_id, product_id, 2)
    except ShopError as e:
        raise HTTPException(status_code=e.status_code, detail=e.as_dict())
"""

from typing import Any


ERROR_MESSAGES = {
    "USER_NOT_FOUND": "User not found",
    "PRODUCT_NOT_FOUND": "Product not found",
    "CART_ITEM_NOT_FOUND": "Cart item not found",
    "UNKNOWN_VARIANT": "Unknown product size",
    "VALIDATION_ERROR": "Invalid request",
    "SIZE_REQUIRED": "Size is required for products with sizes",
    "PRODUCT_INACTIVE": "Product not found or not available",
    "INSUFFICIENT_STOCK": "Insufficient stock",
    "OUT_OF_STOCK": "Product is out of stock",
    "CART_CONFLICT": "Cart was modified by another request",
    "CART_BUSY": "Cart is being modified by another request",
    "INTERNAL_ERROR": "Internal error",
}


class ShopError(Exception):
    """Base class for all expected failures of the catalog/cart core."""

    status_code = 500
    default_code = "INTERNAL_ERROR"

    def __init__(self, message: str = "", code: str | None = None, **data: Any) -> None:
        self.code = code or self.default_code
        self.message = message or ERROR_MESSAGES.get(self.code, self.code)
        self.data = data
        super().__init__(f"[{self.code}] {self.message}")

    def as_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "data": self.data,
        }


class NotFoundError(ShopError):
    status_code = 404


class UserNotFound(NotFoundError):
    default_code = "USER_NOT_FOUND"


class ProductNotFound(NotFoundError):
    default_code = "PRODUCT_NOT_FOUND"


class CartItemNotFound(NotFoundError):
    default_code = "CART_ITEM_NOT_FOUND"


class UnknownVariant(NotFoundError):
    default_code = "UNKNOWN_VARIANT"


class ValidationError(ShopError):
    status_code = 400
    default_code = "VALIDATION_ERROR"


class ProductInactive(ShopError):
    # reported like a missing product to shoppers
    status_code = 404
    default_code = "PRODUCT_INACTIVE"


class InsufficientStock(ShopError):
    """Requested quantity exceeds available stock. Expected and recoverable."""

    status_code = 409
    default_code = "INSUFFICIENT_STOCK"


class OutOfStock(InsufficientStock):
    default_code = "OUT_OF_STOCK"


class ConcurrencyError(ShopError):
    status_code = 409


class CartConflict(ConcurrencyError):
    default_code = "CART_CONFLICT"


class CartBusy(ConcurrencyError):
    default_code = "CART_BUSY"


class PersistenceError(ShopError):
    """Store or transport failure, surfaced as an opaque internal error."""

    status_code = 500
    default_code = "INTERNAL_ERROR"
