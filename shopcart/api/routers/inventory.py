# shopcart/api/routers/inventory.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopcart.api.deps import http_error
from shopcart.data.database import get_db
from shopcart.domain.exceptions import ShopError
from shopcart.domain.schemas import InStockOut, StockChangeIn, StockOut
from shopcart.services.inventory_service import InventoryService

router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("/{product_id}", response_model=StockOut)
def get_stock(product_id: int, db: Session = Depends(get_db)):
    try:
        return StockOut.from_level(InventoryService(db).get_stock(product_id))
    except ShopError as e:
        raise http_error(e)


@router.get("/{product_id}/in-stock", response_model=InStockOut)
def is_in_stock(product_id: int, size: str | None = Query(None), db: Session = Depends(get_db)):
    try:
        in_stock = InventoryService(db).is_in_stock(product_id, size)
    except ShopError as e:
        raise http_error(e)
    return InStockOut(product_id=product_id, size=size, in_stock=in_stock)


@router.post("/{product_id}/decrement", response_model=StockOut)
def decrement_stock(product_id: int, payload: StockChangeIn, db: Session = Depends(get_db)):
    """
    Fulfillment side. 409 on insufficient stock, nothing is decremented then.
    """
    try:
        level = InventoryService(db).decrement_stock(product_id, payload.quantity, payload.size)
    except ShopError as e:
        raise http_error(e)
    return StockOut.from_level(level)


@router.post("/{product_id}/increment", response_model=StockOut)
def increment_stock(product_id: int, payload: StockChangeIn, db: Session = Depends(get_db)):
    """
    Restock or cancellation.
    """
    try:
        level = InventoryService(db).increment_stock(product_id, payload.quantity, payload.size)
    except ShopError as e:
        raise http_error(e)
    return StockOut.from_level(level)
