# shopcart/utils/retry.py
from tenacity import (
    Retrying,
    retry,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
    wait_random,
)
import redis

from shopcart.domain.exceptions import CartConflict
from shopcart.utils.settings import CART_RETRY_ATTEMPTS


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def cart_retry():
    #lost optimistic lock -> reload and try again
    return retry(
        reraise=True,
        stop=stop_after_attempt(CART_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=0.5),
        retry=retry_if_exception_type(CartConflict),
    )


def lock_wait(timeout: float) -> Retrying:
    #poll until the lock is ours or the deadline passes; False once it passed
    return Retrying(
        stop=stop_after_delay(timeout),
        wait=wait_random(min=0.01, max=0.05),
        retry=retry_if_result(lambda locked: not locked),
        retry_error_callback=lambda state: False,
    )
