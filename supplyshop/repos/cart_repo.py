# supplyshop/repos/cart_repo.py
from typing import Dict, List

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from supplyshop.data.models.cart import CartModel
from supplyshop.data.models.cart_item import CartItemModel
from supplyshop.data.models._ids import new_id
from supplyshop.repos._upsert import insert_for


class CartRepo:
    """
    Inserts are upserts keyed on a unique constraint
    (carts.user_id, cart_items(cart_id, product_id)). Quantity changes read the
    line under a row lock before writing it.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_or_create_cart_id(self, user_id: str) -> str:
        stmt = (
            insert_for(self.db, CartModel)
            .values(id=new_id(), user_id=user_id)
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        self.db.execute(stmt)
        return self.db.execute(
            select(CartModel.id).where(CartModel.user_id == user_id)
        ).scalar_one()

    def get_cart_id(self, user_id: str) -> str | None:
        return self.db.execute(
            select(CartModel.id).where(CartModel.user_id == user_id)
        ).scalar_one_or_none()

    def lock_cart(self, user_id: str) -> str | None:
        # FOR UPDATE is dropped by dialects without row locks (sqlite)
        return self.db.execute(
            select(CartModel.id).where(CartModel.user_id == user_id).with_for_update()
        ).scalar_one_or_none()

    def get_cart_items(self, cart_id: str) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
                .execution_options(populate_existing=True)
            ).scalars().unique()
        )

    def upsert_item(self, cart_id: str, product_id: str, quantity: int):
        stmt = insert_for(self.db, CartItemModel).values(
            id=new_id(),
            cart_id=cart_id,
            product_id=product_id,
            quantity=quantity,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["cart_id", "product_id"],
            set_={"quantity": CartItemModel.__table__.c.quantity + stmt.excluded.quantity},
        )
        self.db.execute(stmt)

    def lock_item_quantity(self, cart_id: str, product_id: str) -> int | None:
        # row lock: concurrent deltas on one line run one after another
        return self.db.execute(
            select(CartItemModel.quantity)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .with_for_update()
        ).scalar_one_or_none()

    def set_quantity(self, cart_id: str, product_id: str, quantity: int) -> int:
        result = self.db.execute(
            update(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def subtract_ordered(self, cart_id: str, ordered: Dict[str, int]):
        """Take ordered quantities out of the cart; lines that reach 0 are removed."""
        for product_id, qty in ordered.items():
            current = self.lock_item_quantity(cart_id, product_id)
            if current is None:
                continue
            if current - qty < 1:
                self.delete_cart_item(cart_id, product_id)
            else:
                self.set_quantity(cart_id, product_id, current - qty)

    def delete_cart_item(self, cart_id: str, product_id: str) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def clear(self, cart_id: str) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
