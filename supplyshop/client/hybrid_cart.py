# supplyshop/client/hybrid_cart.py
from copy import deepcopy
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from supplyshop.client.api_client import ShopApiClient
from supplyshop.domain.errors import EmptyCartError, Unauthorized
from supplyshop.domain.session import SessionContext
from supplyshop.utils.optimistic import optimistic
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)

SIGNED_OUT = "SIGNED_OUT"


@dataclass
class CartLine:
    id: str
    name: str
    price: Decimal
    quantity: int
    image_url: str | None = None

    @classmethod
    def from_api(cls, item: Dict) -> "CartLine":
        return cls(
            id=item["product_id"],
            name=item.get("name") or "",
            price=Decimal(str(item.get("price") or 0)),
            quantity=int(item["quantity"]),
            image_url=item.get("image_url"),
        )


class HybridCart:
    """
    Client-side view of the server cart.

    Signed in: mutations are applied locally first and rolled back when the
    server rejects them. Guest: the cart is empty and read only, adding an item
    raises Unauthorized. `on_auth_change` is the one place session changes land.
    """

    def __init__(self, api: ShopApiClient, session: SessionContext | None = None):
        self.api = api
        self.session: SessionContext | None = None
        self.lines: List[CartLine] = []
        if session is not None:
            self.on_auth_change("SIGNED_IN", session)

    @property
    def mode(self) -> str:
        return "db" if self.session is not None else "guest"

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total(self) -> Decimal:
        return sum((line.price * line.quantity for line in self.lines), Decimal("0.00"))

    def on_auth_change(self, event: str, session: SessionContext | None):
        if event == SIGNED_OUT or session is None:
            logger.info("Cart switched to guest mode")
            self.session = None
            self.lines = []
            return
        self.session = session
        self.refresh()

    def refresh(self):
        if self.session is None:
            self.lines = []
            return
        self._load(self.api.get_cart(self.session.access_token))

    def _load(self, view: Dict | None):
        if view is not None:
            self.lines = [CartLine.from_api(i) for i in view.get("items", [])]

    def _find(self, product_id: str) -> CartLine | None:
        return next((line for line in self.lines if line.id == product_id), None)

    def _mutate(self, apply, remote):
        view = optimistic(
            snapshot=lambda: deepcopy(self.lines),
            apply=apply,
            remote=remote,
            restore=lambda saved: setattr(self, "lines", saved),
        )
        self._load(view)

    # commands
    def add_item(self, product: Dict, quantity: int = 1):
        if self.session is None:
            raise Unauthorized("יש להתחבר כדי להוסיף לעגלה")
        token = self.session.access_token

        def apply():
            line = self._find(product["id"])
            if line is not None:
                line.quantity += quantity
            else:
                self.lines.append(
                    CartLine(
                        id=product["id"],
                        name=product.get("name") or "",
                        price=Decimal(str(product.get("price") or 0)),
                        quantity=quantity,
                        image_url=product.get("image_url"),
                    )
                )

        self._mutate(apply, lambda: self.api.add_item(token, product["id"], quantity))

    def update_quantity(self, product_id: str, delta: int):
        if self.session is None:
            return
        token = self.session.access_token

        def apply():
            line = self._find(product_id)
            if line is None:
                return
            line.quantity += delta
            if line.quantity < 1:
                self.lines.remove(line)

        self._mutate(apply, lambda: self.api.update_quantity(token, product_id, delta))

    def remove_item(self, product_id: str):
        if self.session is None:
            return
        token = self.session.access_token

        def apply():
            self.lines = [line for line in self.lines if line.id != product_id]

        self._mutate(apply, lambda: self.api.remove_item(token, product_id))

    def clear(self):
        if self.session is None:
            return
        token = self.session.access_token

        def apply():
            self.lines = []

        self._mutate(apply, lambda: self.api.clear_cart(token))

    def checkout(self) -> Dict:
        """Local lines are dropped only once the server confirmed the order."""
        if self.session is None:
            raise Unauthorized()
        if not self.lines:
            raise EmptyCartError()
        result = self.api.checkout(self.session.access_token, [(line.id, line.quantity) for line in self.lines])
        self.lines = []
        return result
