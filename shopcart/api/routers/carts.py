#shopcart/api/routers/carts.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shopcart.api.deps import get_lock_service, http_error
from shopcart.data.database import get_db
from shopcart.domain.exceptions import ShopError
from shopcart.domain.schemas import (
    AddToCartOut,
    CartCountOut,
    CartEntryOut,
    CartViewOut,
    ItemIn,
    OkOut,
    QuantityIn,
)
from shopcart.services.cart_service import CartService
from shopcart.services.lock_service import LockService

router = APIRouter(prefix="/cart", tags=["cart"])

#user_id comes from the identity resolver in front of this service


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
) -> CartService:
    return CartService(db=db, lock_service=lock_service)


@router.get("", response_model=CartViewOut)
def get_cart(
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    try:
        return CartViewOut.from_view(svc.get_cart(user_id))
    except ShopError as e:
        raise http_error(e)


@router.get("/count", response_model=CartCountOut)
def get_cart_count(
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    try:
        return CartCountOut(count=svc.get_cart_count(user_id))
    except ShopError as e:
        raise http_error(e)


@router.post("/items", response_model=AddToCartOut)
def add_item(
    payload: ItemIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    try:
        result = svc.add_to_cart(
            user_id=user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
    except ShopError as e:
        raise http_error(e)

    return AddToCartOut(
        cart_item_count=result["cart_item_count"],
        entries=[CartEntryOut.from_entry(e) for e in result["entries"]],
    )


@router.put("/items/{entry_id}", response_model=OkOut)
def update_item(
    entry_id: int,
    payload: QuantityIn,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    try:
        svc.update_cart_item(user_id, entry_id, payload.quantity)
    except ShopError as e:
        raise http_error(e)
    return OkOut(message="Cart updated successfully")


@router.delete("/items/{entry_id}", response_model=OkOut)
def remove_item(
    entry_id: int,
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    try:
        svc.remove_cart_item(user_id, entry_id)
    except ShopError as e:
        raise http_error(e)
    return OkOut(message="Item removed from cart successfully")


@router.delete("", response_model=OkOut)
def clear_cart(
    user_id: int = Query(...),
    svc: CartService = Depends(get_service),
):
    try:
        svc.clear_cart(user_id)
    except ShopError as e:
        raise http_error(e)
    return OkOut(message="Cart cleared successfully")
