# supplyshop/services/notification_service.py
from dataclasses import dataclass, field
from decimal import Decimal
from html import escape
from typing import Dict, List, Tuple

from sqlalchemy.orm import Session

from supplyshop.repos.catalog_repo import CatalogRepo
from supplyshop.repos.order_repo import OrderRepo
from supplyshop.utils.settings import RESEND_API_KEY
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SupplierLine:
    name: str
    qty: int
    price: Decimal


@dataclass
class SupplierBatch:
    supplier_id: str
    name: str = ""
    email: str | None = None
    lines: List[SupplierLine] = field(default_factory=list)


@dataclass
class SupplierEmail:
    supplier_id: str
    to: str
    subject: str
    html: str


def short_id(order_id: str) -> str:
    return order_id[:8]


def group_lines_by_supplier(rows) -> Dict[str, SupplierBatch]:
    """
    rows: (product name, supplier_id, quantity, unit_price, product price).
    Lines whose product has no supplier are dropped.
    """
    batches: Dict[str, SupplierBatch] = {}
    for name, supplier_id, quantity, unit_price, product_price in rows:
        if not supplier_id:
            continue
        unit = unit_price if unit_price is not None else (product_price or Decimal("0"))
        batch = batches.setdefault(supplier_id, SupplierBatch(supplier_id=supplier_id))
        batch.lines.append(SupplierLine(name=name or "Product", qty=int(quantity or 1), price=Decimal(unit)))
    return batches


def render_supplier_email(supplier_name: str, order_id: str, lines: List[SupplierLine]) -> str:
    cell = "padding:6px 8px;border-bottom:1px solid #eee"
    head = "padding:6px 8px;border-bottom:2px solid #ddd"
    rows = "".join(
        f"""
      <tr>
        <td style="{cell}">{escape(line.name)}</td>
        <td style="{cell};text-align:center">{line.qty}</td>
        <td style="{cell};text-align:right">₪{line.price:.2f}</td>
      </tr>"""
        for line in lines
    )
    return f"""<!doctype html><html dir="rtl"><body style="font-family:Arial,Helvetica,sans-serif">
    <h2 style="margin:0 0 8px">Order {escape(short_id(order_id))}</h2>
    <p style="margin:0 0 16px">Hello {escape(supplier_name)}, a new order contains your items:</p>
    <table cellpadding="0" cellspacing="0" style="border-collapse:collapse;width:100%;max-width:560px">
      <thead>
        <tr>
          <th style="text-align:right;{head}">Product</th>
          <th style="text-align:center;{head}">Qty</th>
          <th style="text-align:right;{head}">Unit Price</th>
        </tr>
      </thead>
      <tbody>{rows}</tbody>
    </table>
    <p style="color:#666;margin-top:16px">Sent automatically from yeshivashop.co.uk.</p>
  </body></html>"""


def supplier_subject(order_id: str, lines: List[SupplierLine]) -> str:
    return f"New order {short_id(order_id)} – {sum(line.qty for line in lines)} items"


class NotificationService:
    """
    Supplier e-mail fan-out for a committed order.
    Building the e-mails reads the store; sending happens in Celery tasks.
    """

    def __init__(self, api_key: str | None = None):
        self.api_key = api_key if api_key is not None else RESEND_API_KEY

    @staticmethod
    def build_supplier_emails(db: Session, order_id: str) -> Tuple[List[SupplierEmail], List[str]]:
        """One e-mail per supplier with an address; returns (emails, skipped supplier ids)."""
        rows = OrderRepo(db).get_supplier_lines(order_id)
        batches = group_lines_by_supplier(rows)
        if not batches:
            return [], []

        for supplier in CatalogRepo(db).get_suppliers(batches.keys()):
            batch = batches[supplier.id]
            batch.name = supplier.name
            batch.email = supplier.email

        emails, skipped = [], []
        for batch in batches.values():
            if not batch.email or not batch.lines:
                logger.info(f"Supplier {batch.supplier_id} has no email, skipping order {order_id}")
                skipped.append(batch.supplier_id)
                continue
            emails.append(
                SupplierEmail(
                    supplier_id=batch.supplier_id,
                    to=batch.email,
                    subject=supplier_subject(order_id, batch.lines),
                    html=render_supplier_email(batch.name or "Supplier", order_id, batch.lines),
                )
            )
        return emails, skipped

    def notify_suppliers(self, order_id: str) -> bool:
        """
        Enqueue the fan-out. Never raises: the order is already committed.
        """
        if not self.api_key:
            logger.warning(f"[email] RESEND_API_KEY missing; skipping supplier emails for order {order_id}")
            return False

        from supplyshop.tasks.notifications import notify_suppliers_task

        try:
            notify_suppliers_task.delay(order_id)
        except Exception as e:
            logger.error(f"[email] could not enqueue supplier emails for order {order_id}: {e}")
            return False
        return True
