import uuid
from contextlib import contextmanager

import redis
from redis.exceptions import RedisError

from shopcart.domain.exceptions import CartBusy, PersistenceError
from shopcart.utils.retry import lock_wait, redis_retry
from shopcart.utils.settings import REDIS_URL, CART_LOCK_TTL_SECONDS, CART_LOCK_WAIT_SECONDS
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)

#LUA compare-and-delete, runs atomically inside redis
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""

#redis runs the script as one uninterruptible step
#nobody can slip in between GET and DEL, so we never delete a lock taken over by another request


class LockService:
    """
    -per-user cart lock (one mutation of a cart at a time)
    -token per holder, release only by the holder
    -TTL so a crashed request cannot block a cart forever
    -a contended lock is waited for, up to wait_timeout seconds
    """

    def __init__(
        self,
        url: str | None = None,
        client: redis.Redis | None = None,
        wait_timeout: float = CART_LOCK_WAIT_SECONDS,
    ):
        self.wait_timeout = wait_timeout
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def cart_key(user_id: int) -> str:
        return f"cart:{user_id}:lock"

    @redis_retry()
    def acquire_cart_lock(self, user_id: int, token: str, ttl: int = CART_LOCK_TTL_SECONDS) -> bool:
        key = self.cart_key(user_id)
        logger.debug(f"Acquire lock {key}")
        #SET cart:1:lock "<token>" NX EX 5
        return bool(self.redis.set(name=key, value=token, nx=True, ex=ttl))

    @redis_retry()
    def release_cart_lock(self, user_id: int, token: str) -> bool:
        key = self.cart_key(user_id)
        logger.debug(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)

    @contextmanager
    def cart_lock(self, user_id: int):
        token = uuid.uuid4().hex
        try:
            locked = lock_wait(self.wait_timeout)(self.acquire_cart_lock, user_id, token)
        except RedisError as e:
            logger.error(f"Redis unavailable while locking cart of user {user_id}: {e}")
            raise PersistenceError(user_id=user_id) from e

        if not locked:
            logger.warning(f"Cart lock of user {user_id} still held after {self.wait_timeout}s")
            raise CartBusy(user_id=user_id)

        try:
            yield token
        finally:
            try:
                self.release_cart_lock(user_id, token)
            except RedisError as e:
                # the TTL frees it anyway
                logger.warning(f"Failed to release cart lock for user {user_id}: {e}")
