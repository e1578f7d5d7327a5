# shopcart/repos/product_repo.py
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload

from shopcart.data.models.product import ProductModel, ProductSizeModel
from shopcart.domain.entities import Discount, ProductState, SizeVariant, StockLevel
from shopcart.domain.pricing import as_utc


def to_product_state(model: ProductModel) -> ProductState:
    discount = None
    if model.discount_percentage:
        discount = Discount(
            percentage=Decimal(model.discount_percentage),
            start=as_utc(model.discount_start),
            end=as_utc(model.discount_end),
        )
    return ProductState(
        id=model.id,
        name=model.name,
        base_price=Decimal(model.base_price),
        total_stock=model.total_stock,
        is_active=model.is_active,
        discount=discount,
        sizes=tuple(SizeVariant(size=s.size, stock=s.stock) for s in model.sizes),
    )


def to_stock_level(model: ProductModel) -> StockLevel:
    return StockLevel(
        product_id=model.id,
        total_stock=model.total_stock,
        sizes=tuple(SizeVariant(size=s.size, stock=s.stock) for s in model.sizes),
    )


class ProductRepo:
    """
    Product rows and the conditional stock updates.

    Stock is only ever changed with a single UPDATE ... WHERE stock >= q so the
    check and the subtraction happen in one statement inside the database.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        # always hit the database, stock read must see the latest committed write
        return self.db.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .options(selectinload(ProductModel.sizes))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_products(self, product_ids: Iterable[int]) -> dict[int, ProductModel]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(ProductModel)
            .where(ProductModel.id.in_(ids))
            .options(selectinload(ProductModel.sizes))
            .execution_options(populate_existing=True)
        ).scalars().all()
        return {p.id: p for p in rows}

    def get_size(self, product_id: int, size: str) -> ProductSizeModel | None:
        return self.db.execute(
            select(ProductSizeModel)
            .where(ProductSizeModel.product_id == product_id, ProductSizeModel.size == size)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product

    def set_active(self, product_id: int, is_active: bool) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(is_active=is_active)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # stock, rowcount 0 means the WHERE did not match
    def decrement_total(self, product_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.total_stock >= quantity)
            .values(total_stock=ProductModel.total_stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def decrement_size(self, product_id: int, size: str, quantity: int) -> int:
        result = self.db.execute(
            update(ProductSizeModel)
            .where(
                ProductSizeModel.product_id == product_id,
                ProductSizeModel.size == size,
                ProductSizeModel.stock >= quantity,
            )
            .values(stock=ProductSizeModel.stock - quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def increment_total(self, product_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(total_stock=ProductModel.total_stock + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def increment_size(self, product_id: int, size: str, quantity: int) -> int:
        result = self.db.execute(
            update(ProductSizeModel)
            .where(ProductSizeModel.product_id == product_id, ProductSizeModel.size == size)
            .values(stock=ProductSizeModel.stock + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
