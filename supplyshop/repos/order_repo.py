# supplyshop/repos/order_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from supplyshop.data.models.order import OrderModel
from supplyshop.data.models.order_item import OrderItemModel
from supplyshop.data.models.product import ProductModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # flush only: the caller owns the transaction boundary
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_items(self, items: List[OrderItemModel]):
        self.db.add_all(items)
        self.db.flush()

    def get_order(self, order_id: str) -> OrderModel | None:
        return self.db.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(selectinload(OrderModel.items))
        ).scalar_one_or_none()

    def list_orders(self, user_id: str | None = None) -> List[OrderModel]:
        stmt = select(OrderModel).options(selectinload(OrderModel.items))
        if user_id is not None:
            stmt = stmt.where(OrderModel.user_id == user_id)
        stmt = stmt.order_by(OrderModel.created_at.desc())
        return list(self.db.execute(stmt).scalars())

    def get_supplier_lines(self, order_id: str):
        """Rows of (product name, supplier_id, quantity, unit_price, product price)."""
        stmt = (
            select(
                ProductModel.name,
                ProductModel.supplier_id,
                OrderItemModel.quantity,
                OrderItemModel.unit_price,
                ProductModel.price,
            )
            .join(ProductModel, ProductModel.id == OrderItemModel.product_id)
            .where(OrderItemModel.order_id == order_id)
            .order_by(ProductModel.name)
        )
        return self.db.execute(stmt).all()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
