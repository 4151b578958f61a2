from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from supplyshop.domain.errors import ProductNotFoundError, ValidationError
from supplyshop.repos.cart_repo import CartRepo
from supplyshop.repos.catalog_repo import CatalogRepo
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    One mutable cart per authenticated user.
    commands (get_or_create, add, update, remove, clear) write through upserts
    query (get_cart_view) is read only
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.catalog = CatalogRepo(db)

    # query
    def get_cart_view(self, user_id: str) -> Dict[str, Any]:
        cart_id = self.get_or_create_cart(user_id)
        items = self.repo.get_cart_items(cart_id)

        lines = [
            {
                "product_id": i.product_id,
                "name": i.product.name,
                "price": i.product.price,
                "quantity": i.quantity,
                "image_url": i.product.image_url,
            }
            for i in items
            if i.product is not None
        ]
        return {
            "cart_id": cart_id,
            "items": lines,
            "count": sum(line["quantity"] for line in lines),
            "total": sum((line["price"] * line["quantity"] for line in lines), Decimal("0.00")),
        }

    # commands
    def get_or_create_cart(self, user_id: str) -> str:
        try:
            cart_id = self.repo.get_or_create_cart_id(user_id)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise
        return cart_id

    def add_item(self, cart_id: str, product_id: str, quantity: int = 1):
        if quantity < 1:
            raise ValidationError("הכמות חייבת להיות לפחות 1")

        if self.catalog.get_product(product_id) is None:
            raise ProductNotFoundError([product_id])

        try:
            self.repo.upsert_item(cart_id, product_id, quantity)
            self.repo.commit()
        except Exception as e:
            logger.error(f"add_item failed for cart {cart_id}, product {product_id}: {e}")
            self.repo.rollback()
            raise

        logger.info(f"Added {quantity} x {product_id} to cart {cart_id}")

    def update_quantity(self, cart_id: str, product_id: str, delta: int):
        """Apply delta; a line that would drop below 1 is removed."""
        if delta == 0:
            return
        removed = False
        try:
            current = self.repo.lock_item_quantity(cart_id, product_id)
            if current is not None:
                if current + delta < 1:
                    removed = bool(self.repo.delete_cart_item(cart_id, product_id))
                else:
                    self.repo.set_quantity(cart_id, product_id, current + delta)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        if removed:
            logger.info(f"Product {product_id} removed from cart {cart_id} (quantity below 1)")

    def remove_item(self, cart_id: str, product_id: str):
        self.repo.delete_cart_item(cart_id, product_id)
        self.repo.commit()
        logger.info(f"Product {product_id} removed from cart {cart_id}")

    def clear_cart(self, cart_id: str):
        removed = self.repo.clear(cart_id)
        self.repo.commit()
        logger.info(f"Cart {cart_id} cleared ({removed} lines)")
