# shopcart/services/inventory_service.py
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopcart.domain.entities import StockLevel
from shopcart.domain.exceptions import (
    InsufficientStock,
    PersistenceError,
    ProductNotFound,
    UnknownVariant,
    ValidationError,
)
from shopcart.repos.product_repo import ProductRepo, to_stock_level
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


def _check_quantity(quantity: int) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("Quantity must be a positive integer", quantity=quantity)


class InventoryService:
    """
    Inventory ledger: per-product aggregate stock and per-size stock.

    decrement_stock is check-and-decrement in one conditional UPDATE per row,
    variant row and product row in the same transaction. Concurrent callers
    competing for the last unit are serialized by the database, exactly one wins.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    #query
    def get_stock(self, product_id: int) -> StockLevel:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)
        return to_stock_level(product)

    def is_in_stock(self, product_id: int, size: str | None = None) -> bool:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)

        if size is None:
            return product.total_stock > 0

        for s in product.sizes:
            if s.size == size:
                return s.stock > 0
        # unknown size is simply not in stock
        return False

    #commands
    def decrement_stock(self, product_id: int, quantity: int, size: str | None = None) -> StockLevel:
        _check_quantity(quantity)
        self._check_size(product_id, size)

        try:
            if size is not None:
                if self.repo.decrement_size(product_id, size, quantity) == 0:
                    self._raise_for_decrement(product_id, quantity, size)

            if self.repo.decrement_total(product_id, quantity) == 0:
                self._raise_for_decrement(product_id, quantity, None)

            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Stock decrement failed for product {product_id}: {e}")
            raise PersistenceError(product_id=product_id) from e

        logger.info(f"Stock of product {product_id} decremented by {quantity} (size={size})")
        return self.get_stock(product_id)

    def increment_stock(self, product_id: int, quantity: int, size: str | None = None) -> StockLevel:
        _check_quantity(quantity)
        self._check_size(product_id, size)

        try:
            if size is not None and self.repo.increment_size(product_id, size, quantity) == 0:
                self.repo.rollback()
                if not self.repo.get_product(product_id):
                    raise ProductNotFound(product_id=product_id)
                raise UnknownVariant(product_id=product_id, size=size)

            if self.repo.increment_total(product_id, quantity) == 0:
                self.repo.rollback()
                raise ProductNotFound(product_id=product_id)

            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.error(f"Stock increment failed for product {product_id}: {e}")
            raise PersistenceError(product_id=product_id) from e

        logger.info(f"Stock of product {product_id} incremented by {quantity} (size={size})")
        return self.get_stock(product_id)

    def _check_size(self, product_id: int, size: str | None) -> None:
        # a sized product keeps total_stock == sum(sizes), so every change names a size
        if size is not None:
            return
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)
        if product.sizes:
            raise ValidationError(
                code="SIZE_REQUIRED",
                product_id=product_id,
                sizes=[s.size for s in product.sizes],
            )

    def _raise_for_decrement(self, product_id: int, quantity: int, size: str | None):
        # nothing matched: undo whatever this transaction already changed, then find out why
        self.repo.rollback()

        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)

        if size is None:
            available = product.total_stock
        else:
            variant = self.repo.get_size(product_id, size)
            if not variant:
                raise UnknownVariant(product_id=product_id, size=size)
            available = variant.stock

        logger.warning(
            f"Insufficient stock for product {product_id} (size={size}): "
            f"requested {quantity}, available {available}"
        )
        raise InsufficientStock(
            product_id=product_id,
            size=size,
            requested=quantity,
            available=available,
        )
