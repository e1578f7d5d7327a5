# shopcart/services/product_service.py
from sqlalchemy.orm import Session

from shopcart.data.models.product import ProductModel, ProductSizeModel
from shopcart.domain.entities import ProductState
from shopcart.domain.exceptions import ProductNotFound
from shopcart.domain.schemas import ProductCreate
from shopcart.domain.pricing import as_utc
from shopcart.repos.product_repo import ProductRepo, to_product_state
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """
    Minimal catalog management: create, read, soft delete.
    Stock is never written here, only through InventoryService.
    """

    def __init__(self, db: Session):
        self.repo = ProductRepo(db)

    def create_product(self, payload: ProductCreate) -> ProductState:
        discount = payload.discount
        model = ProductModel(
            name=payload.name,
            base_price=payload.base_price,
            total_stock=payload.total_stock,
            is_active=payload.is_active,
            discount_percentage=discount.percentage if discount else 0,
            discount_start=as_utc(discount.start) if discount else None,
            discount_end=as_utc(discount.end) if discount else None,
            sizes=[ProductSizeModel(size=s.size, stock=s.stock) for s in payload.sizes],
        )
        created = self.repo.create_product(model)
        logger.info(f"Created product {created.id} ({created.name})")
        return to_product_state(created)

    def get_product(self, product_id: int) -> ProductState:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)
        return to_product_state(product)

    def deactivate(self, product_id: int) -> ProductState:
        # soft delete, carts keep pointing at it
        if self.repo.set_active(product_id, False) == 0:
            self.repo.rollback()
            raise ProductNotFound(product_id=product_id)
        self.repo.commit()
        logger.info(f"Product {product_id} deactivated")
        return self.get_product(product_id)
