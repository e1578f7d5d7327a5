# shopcart/api/routers/products.py
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopcart.api.deps import http_error
from shopcart.data.database import get_db
from shopcart.domain.exceptions import ShopError
from shopcart.domain.schemas import ProductCreate, ProductOut
from shopcart.services.product_service import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.post("/", response_model=ProductOut, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    """
    Catalog management helper, the real catalog lives elsewhere.
    """
    product = ProductService(db).create_product(payload)
    return ProductOut.from_state(product, datetime.now(timezone.utc))


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        product = ProductService(db).get_product(product_id)
    except ShopError as e:
        raise http_error(e)
    return ProductOut.from_state(product, datetime.now(timezone.utc))


@router.post("/{product_id}/deactivate", response_model=ProductOut)
def deactivate_product(product_id: int, db: Session = Depends(get_db)):
    try:
        product = ProductService(db).deactivate(product_id)
    except ShopError as e:
        raise http_error(e)
    return ProductOut.from_state(product, datetime.now(timezone.utc))
