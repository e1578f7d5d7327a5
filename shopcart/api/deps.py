# shopcart/api/deps.py
from functools import lru_cache

from fastapi import HTTPException

from shopcart.domain.exceptions import ShopError
from shopcart.services.lock_service import LockService


@lru_cache
def get_lock_service() -> LockService:
    # one redis connection pool per process
    return LockService()


def http_error(e: ShopError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.as_dict())
