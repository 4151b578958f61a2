# supplyshop/client/local_cart.py
import json
import os
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)


class LocalCartLine(BaseModel):
    id: str
    name: str = ""
    price: Decimal = Decimal("0")
    quantity: int = 1
    image_url: Optional[str] = None


_lines = TypeAdapter(List[LocalCartLine])


class LocalCart:
    """
    Cart kept in a JSON file for a guest on this device.
    Never sent to checkout; unreadable files count as an empty cart.
    """

    def __init__(self, path: str):
        self.path = path
        self.lines: List[LocalCartLine] = self._read()

    def _read(self) -> List[LocalCartLine]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return _lines.validate_python(json.load(f))
        except (OSError, ValueError, PydanticValidationError) as e:
            logger.warning(f"Ignoring unreadable local cart {self.path}: {e}")
            return []

    def _write(self):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(_lines.dump_json(self.lines).decode("utf-8"))

    @property
    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def total(self) -> Decimal:
        return sum((line.price * line.quantity for line in self.lines), Decimal("0.00"))

    def add_item(self, product: dict, quantity: int = 1):
        for line in self.lines:
            if line.id == product["id"]:
                line.quantity += quantity
                break
        else:
            self.lines.append(LocalCartLine(**{**product, "quantity": quantity}))
        self._write()

    def update_quantity(self, product_id: str, delta: int):
        for line in self.lines:
            if line.id == product_id:
                line.quantity += delta
        self.lines = [line for line in self.lines if line.quantity >= 1]
        self._write()

    def remove_item(self, product_id: str):
        self.lines = [line for line in self.lines if line.id != product_id]
        self._write()

    def clear(self):
        self.lines = []
        self._write()
