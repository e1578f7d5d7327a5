from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopcart.api.deps import http_error
from shopcart.data.database import get_db
from shopcart.domain.exceptions import ShopError
from shopcart.domain.schemas import UserCreate, UserRead
from shopcart.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])

@router.post("/", response_model=UserRead)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    service = UserService(db)
    return service.create_user(payload)

@router.get("/{user_id}", response_model=UserRead)
def get_user(user_id: int, db: Session = Depends(get_db)):
    service = UserService(db)
    try:
        return service.get_user(user_id)
    except ShopError as e:
        raise http_error(e)
