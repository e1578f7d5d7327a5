# shopcart/data/seed.py
from decimal import Decimal

from shopcart.data.database import Base, SessionLocal, engine
from shopcart.data.models import ProductModel, ProductSizeModel, UserModel


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return
        db.add(UserModel(id=1, name="Demo", cart_version=1))
        db.add_all(
            [
                ProductModel(name="Keyboard", base_price=Decimal("199.99"), total_stock=25),
                ProductModel(name="Mouse", base_price=Decimal("49.50"), total_stock=0),
                ProductModel(
                    name="T-Shirt",
                    base_price=Decimal("20.00"),
                    discount_percentage=Decimal("25"),
                    total_stock=9,
                    sizes=[
                        ProductSizeModel(size="S", stock=2),
                        ProductSizeModel(size="M", stock=4),
                        ProductSizeModel(size="L", stock=3),
                    ],
                ),
            ]
        )
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
