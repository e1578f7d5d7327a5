from datetime import datetime, timezone
from typing import Any, Callable, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopcart.domain import cart_rules
from shopcart.domain.entities import CartEntry, CartState, CartView
from shopcart.domain.exceptions import (
    CartItemNotFound,
    ConcurrencyError,
    OutOfStock,
    PersistenceError,
    ProductInactive,
    ProductNotFound,
    UserNotFound,
    ValidationError,
)
from shopcart.domain.pricing import ShippingPolicy
from shopcart.repos.cart_repo import CartRepo
from shopcart.repos.product_repo import ProductRepo, to_product_state
from shopcart.services.cart_aggregator import price_cart
from shopcart.services.inventory_service import InventoryService
from shopcart.services.lock_service import LockService
from shopcart.utils.logging import get_logger
from shopcart.utils.retry import cart_retry

logger = get_logger(__name__)

Transition = Callable[[tuple[CartEntry, ...]], tuple[CartEntry, ...]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _positive_quantity(quantity: Any) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise ValidationError("Quantity must be a positive integer", quantity=quantity)
    return quantity


class CartService:
    """
    Cart use cases, CQRS style:
    commands (add, set_quantity, remove, clear and their entry-id forms) change the cart
    queries (snapshot, get_cart, get_cart_count) only read

    Cart membership never touches stock. Adding checks is_in_stock but reserves nothing.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService,
        shipping_policy: ShippingPolicy | None = None,
    ):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.inventory = InventoryService(db)
        self.lock_service = lock_service
        self.shipping_policy = shipping_policy or ShippingPolicy()

    #queries
    def snapshot(self, user_id: int) -> tuple[CartEntry, ...]:
        return self._load(user_id).entries

    def get_cart(self, user_id: int, now: datetime | None = None) -> CartView:
        state = self._load(user_id)
        models = self.products.get_products(e.product_id for e in state.entries)
        products = {pid: to_product_state(m) for pid, m in models.items()}
        return price_cart(state.entries, products, now or _utcnow(), self.shipping_policy)

    def get_cart_count(self, user_id: int) -> int:
        return cart_rules.item_count(self.snapshot(user_id))

    #commands, cart store
    def add(self, user_id: int, product_id: int, quantity: int = 1) -> CartState:
        _positive_quantity(quantity)
        now = _utcnow()
        logger.info(f"Adding product {product_id} x{quantity} to cart of user {user_id}")
        return self._mutate(
            user_id,
            lambda entries: cart_rules.add_entry(entries, product_id, quantity, now),
        )

    def set_quantity(self, user_id: int, product_id: int, quantity: int) -> CartState:
        logger.info(f"Setting quantity of product {product_id} to {quantity} for user {user_id}")
        return self._mutate(
            user_id,
            lambda entries: cart_rules.set_quantity(entries, product_id, quantity),
        )

    def remove(self, user_id: int, product_id: int) -> CartState:
        logger.info(f"Removing product {product_id} from cart of user {user_id}")
        return self._mutate(
            user_id,
            lambda entries: cart_rules.remove_entry(entries, product_id),
        )

    def clear(self, user_id: int) -> CartState:
        logger.info(f"Clearing cart of user {user_id}")
        return self._mutate(user_id, cart_rules.clear_entries)

    #commands, external interface
    def add_to_cart(self, user_id: int, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        _positive_quantity(quantity)

        product = self.products.get_product(product_id)
        if not product:
            raise ProductNotFound(product_id=product_id)
        if not product.is_active:
            raise ProductInactive(product_id=product_id)

        # availability check only, no reservation
        if not self.inventory.is_in_stock(product_id):
            raise OutOfStock(product_id=product_id, requested=quantity, available=0)

        state = self.add(user_id, product_id, quantity)
        return {
            "cart_item_count": cart_rules.item_count(state.entries),
            "entries": state.entries,
        }

    def update_cart_item(self, user_id: int, entry_id: int, quantity: int) -> CartState:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise ValidationError("Valid quantity is required", quantity=quantity)

        def transition(entries):
            entry = cart_rules.entry_by_id(entries, entry_id)
            if entry is None:
                raise CartItemNotFound(entry_id=entry_id)
            return cart_rules.set_quantity(entries, entry.product_id, quantity)

        logger.info(f"Updating cart item {entry_id} of user {user_id} to quantity {quantity}")
        return self._mutate(user_id, transition)

    def remove_cart_item(self, user_id: int, entry_id: int) -> CartState:
        def transition(entries):
            entry = cart_rules.entry_by_id(entries, entry_id)
            if entry is None:
                return entries
            return cart_rules.remove_entry(entries, entry.product_id)

        logger.info(f"Removing cart item {entry_id} of user {user_id}")
        return self._mutate(user_id, transition)

    def clear_cart(self, user_id: int) -> CartState:
        return self.clear(user_id)

    #internals
    def _load(self, user_id: int) -> CartState:
        state = self.repo.load_cart(user_id)
        if state is None:
            raise UserNotFound(user_id=user_id)
        return state

    @cart_retry()
    def _mutate(self, user_id: int, transition: Transition) -> CartState:
        """
        Load, transition, commit under the user's cart lock.
        save_cart re-checks the cart version, so a lock that expired mid-way
        still cannot lose an update. Conflicts are retried by cart_retry.
        """
        with self.lock_service.cart_lock(user_id):
            try:
                state = self._load(user_id)
                entries = transition(state.entries)

                if entries == state.entries:
                    self.repo.rollback()
                    return state

                version = self.repo.save_cart(state, entries)
            except ConcurrencyError:
                logger.warning(f"Concurrent modification of cart of user {user_id}, retrying")
                raise
            except SQLAlchemyError as e:
                self.repo.rollback()
                logger.error(f"Cart update failed for user {user_id}: {e}")
                raise PersistenceError(user_id=user_id) from e
            except Exception:
                self.repo.rollback()
                raise

        logger.info(f"Cart of user {user_id} committed, new version: {version}")
        return self._load(user_id)
