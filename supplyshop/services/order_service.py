# supplyshop/services/order_service.py
from decimal import Decimal
from typing import Dict, Iterable, List, Tuple

from sqlalchemy.orm import Session

from supplyshop.data.models.order import OrderModel
from supplyshop.data.models.order_item import OrderItemModel
from supplyshop.domain.errors import (
    CheckoutFailed,
    CheckoutInProgress,
    EmptyCartError,
    NotFound,
    ProductNotFoundError,
    ShopError,
)
from supplyshop.repos.cart_repo import CartRepo
from supplyshop.repos.catalog_repo import CatalogRepo
from supplyshop.repos.order_repo import OrderRepo
from supplyshop.repos.profile_repo import ProfileRepo
from supplyshop.services.lock_service import LockService
from supplyshop.services.notification_service import NotificationService
from supplyshop.utils.settings import CHECKOUT_LOCK_TTL_SECONDS
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_CUSTOMER = "לא ידוע"


def merge_lines(lines: Iterable[Tuple[str, int]]) -> Dict[str, int]:
    """Sum quantities per product id, keeping first-seen order."""
    merged: Dict[str, int] = {}
    for product_id, quantity in lines:
        merged[product_id] = merged.get(product_id, 0) + int(quantity)
    return merged


class OrderService:
    """
    Checkout and order reads. The checkout writes the order, its items and the
    cart clear in one transaction; supplier e-mails go out only after commit.
    """

    def __init__(
        self,
        db: Session,
        lock_service: LockService | None = None,
        notification_service: NotificationService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.catalog = CatalogRepo(db)
        self.lock_service = lock_service
        self.notification_service = notification_service or NotificationService()

    def checkout(self, user_id: str, lines: List[Tuple[str, int]] | None = None) -> Dict:
        """
        Use case: turn the caller's cart (or the explicit lines) into an order.

        1. per-user lock against concurrent checkouts (best effort)
        2. order + order_items + cart clear, single commit
        3. supplier fan-out enqueued, never fails the checkout
        """
        token = None
        if self.lock_service is not None:
            token = self.lock_service.acquire_checkout_lock(user_id, CHECKOUT_LOCK_TTL_SECONDS)
            if token is None:
                raise CheckoutInProgress("ההזמנה כבר בתהליך, נסו שוב בעוד רגע")

        try:
            order_id, total = self._create_order(user_id, lines or [])
        finally:
            if self.lock_service is not None:
                self.lock_service.release_checkout_lock(user_id, token)

        self.notification_service.notify_suppliers(order_id)

        return {"ok": True, "orderId": order_id, "total": total}

    def _create_order(self, user_id: str, lines: List[Tuple[str, int]]) -> Tuple[str, Decimal]:
        try:
            cart_id = self.carts.lock_cart(user_id)

            if lines:
                requested = merge_lines(lines)
            elif cart_id is not None:
                requested = merge_lines(
                    (i.product_id, i.quantity) for i in self.carts.get_cart_items(cart_id)
                )
            else:
                requested = {}

            if not requested:
                raise EmptyCartError()

            products = {p.id: p for p in self.catalog.get_products(requested.keys())}
            missing = [pid for pid in requested if pid not in products]
            if missing:
                raise ProductNotFoundError(missing)

            total = sum(
                (Decimal(products[pid].price) * qty for pid, qty in requested.items()),
                Decimal("0.00"),
            ).quantize(Decimal("0.01"))

            order = self.repo.add_order(OrderModel(user_id=user_id, total=total))
            self.repo.add_order_items(
                [
                    OrderItemModel(
                        order_id=order.id,
                        product_id=pid,
                        quantity=qty,
                        unit_price=products[pid].price,
                    )
                    for pid, qty in requested.items()
                ]
            )
            if cart_id is not None:
                if lines:
                    # only what was ordered leaves the stored cart
                    self.carts.subtract_ordered(cart_id, requested)
                else:
                    self.carts.clear(cart_id)

            order_id = order.id
            self.repo.commit()
        except ShopError:
            self.repo.rollback()
            raise
        except Exception as e:
            self.repo.rollback()
            logger.exception(f"Checkout transaction failed for user {user_id}")
            raise CheckoutFailed() from e

        logger.info(f"Order {order_id} created for user {user_id}: {len(requested)} lines, total {total}")
        return order_id, total

    # queries
    def get_order(self, order_id: str, user_id: str) -> Dict:
        order = self.repo.get_order(order_id)
        # someone else's order looks exactly like a missing one
        if not order or order.user_id != user_id:
            raise NotFound("ההזמנה לא נמצאה")
        return self._order_dict(order)

    def list_orders(self, user_id: str) -> List[Dict]:
        return [self._order_dict(o) for o in self.repo.list_orders(user_id)]

    def list_all_orders(self) -> List[Dict]:
        orders = self.repo.list_orders()
        profiles = {p.id: p for p in ProfileRepo(self.db).get_profiles(o.user_id for o in orders)}
        out = []
        for o in orders:
            profile = profiles.get(o.user_id)
            name = (profile and (profile.full_name or profile.institution_name)) or UNKNOWN_CUSTOMER
            out.append({**self._order_dict(o), "customer_name": name})
        return out

    @staticmethod
    def _order_dict(order: OrderModel) -> Dict:
        return {
            "id": order.id,
            "user_id": order.user_id,
            "total": order.total,
            "created_at": order.created_at,
            "items": [
                {
                    "product_id": i.product_id,
                    "name": i.product.name if i.product is not None else "",
                    "quantity": i.quantity,
                    "unit_price": i.unit_price,
                }
                for i in order.items
            ],
        }
