# shopcart/repos/cart_repo.py
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopcart.data.models.cart_item import CartItemModel
from shopcart.data.models.user import UserModel
from shopcart.domain.entities import CartEntry, CartState
from shopcart.domain.exceptions import CartConflict
from shopcart.domain.pricing import as_utc


def to_cart_entry(item: CartItemModel) -> CartEntry:
    return CartEntry(
        id=item.id,
        product_id=item.product_id,
        quantity=item.quantity,
        added_at=as_utc(item.added_at),
    )


class CartRepo:
    """
    Loads a user's cart as one document (version + ordered entries) and
    commits a new list of entries against the version it was loaded at.
    """

    def __init__(self, db: Session):
        self.db = db

    def load_cart(self, user_id: int) -> CartState | None:
        version = self.db.execute(
            select(UserModel.cart_version).where(UserModel.id == user_id)
        ).scalar_one_or_none()

        if version is None:
            return None

        items = self.db.execute(
            select(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .order_by(CartItemModel.id)
            .execution_options(populate_existing=True)
        ).scalars().all()

        return CartState(
            user_id=user_id,
            version=version,
            entries=tuple(to_cart_entry(i) for i in items),
        )

    def save_cart(self, state: CartState, entries: tuple[CartEntry, ...]) -> int:
        """
        Write ``entries`` as the user's cart if nobody committed since ``state``
        was loaded. Returns the new cart version.
        """
        # optimistic locking first:
        # UPDATE users SET cart_version = v + 1 WHERE id = ? AND cart_version = v
        rowcount = self.db.execute(
            update(UserModel)
            .where(UserModel.id == state.user_id, UserModel.cart_version == state.version)
            .values(cart_version=state.version + 1)
            .execution_options(synchronize_session=False)
        ).rowcount

        if rowcount == 0:
            self.db.rollback()
            raise CartConflict(user_id=state.user_id, version=state.version)

        old = {e.id: e for e in state.entries}
        kept_ids = {e.id for e in entries if e.id is not None}

        removed = [entry_id for entry_id in old if entry_id not in kept_ids]
        if removed:
            self.db.execute(
                delete(CartItemModel)
                .where(CartItemModel.user_id == state.user_id, CartItemModel.id.in_(removed))
                .execution_options(synchronize_session=False)
            )

        for entry in entries:
            if entry.id is None:
                self.db.add(
                    CartItemModel(
                        user_id=state.user_id,
                        product_id=entry.product_id,
                        quantity=entry.quantity,
                        added_at=entry.added_at,
                    )
                )
            elif old[entry.id].quantity != entry.quantity:
                self.db.execute(
                    update(CartItemModel)
                    .where(CartItemModel.id == entry.id, CartItemModel.user_id == state.user_id)
                    .values(quantity=entry.quantity)
                    .execution_options(synchronize_session=False)
                )

        try:
            self.db.commit()
        except IntegrityError:
            # same product inserted twice by racing requests
            self.db.rollback()
            raise CartConflict(user_id=state.user_id, version=state.version)

        return state.version + 1

    def rollback(self):
        self.db.rollback()
