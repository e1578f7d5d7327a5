#shopcart/data/models/product.py
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from shopcart.data.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)

    base_price = Column(Numeric(10, 2), nullable=False)
    discount_percentage = Column(Numeric(5, 2), nullable=False, default=0)
    discount_start = Column(DateTime(timezone=True), nullable=True)
    discount_end = Column(DateTime(timezone=True), nullable=True)

    # == sum(sizes.stock) when the product has sizes
    total_stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    sizes = relationship(
        "ProductSizeModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductSizeModel.id",
    )

    __table_args__ = (
        CheckConstraint("base_price >= 0", name="ck_product_price_non_negative"),
        CheckConstraint("total_stock >= 0", name="ck_product_stock_non_negative"),
        CheckConstraint(
            "discount_percentage >= 0 AND discount_percentage <= 100",
            name="ck_product_discount_range",
        ),
    )


class ProductSizeModel(Base):
    __tablename__ = "product_sizes"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    size = Column(String, nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    product = relationship("ProductModel", back_populates="sizes")

    __table_args__ = (
        UniqueConstraint("product_id", "size", name="u_product_size"),
        CheckConstraint("stock >= 0", name="ck_product_size_stock_non_negative"),
    )
