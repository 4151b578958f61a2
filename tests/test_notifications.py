from decimal import Decimal

from supplyshop.data.models import OrderItemModel, OrderModel
from supplyshop.services.email_client import EmailClient
from supplyshop.services.notification_service import (
    NotificationService,
    SupplierLine,
    group_lines_by_supplier,
    render_supplier_email,
    supplier_subject,
)
from supplyshop.tasks.notifications import notify_suppliers_task


def _order(db, seed, lines):
    order = OrderModel(user_id="buyer", total=Decimal("0"))
    db.add(order)
    db.flush()
    for key, qty, price in lines:
        db.add(OrderItemModel(order_id=order.id, product_id=seed["products"][key], quantity=qty, unit_price=price))
    db.commit()
    return order.id


def test_group_lines_by_supplier():
    rows = [
        ("Pens", "sup-a", 2, Decimal("10.00"), Decimal("10.00")),
        ("Paper", "sup-b", 1, None, Decimal("25.00")),
        ("Ink", "sup-a", 3, Decimal("4.00"), Decimal("5.00")),
        ("Orphan", None, 1, Decimal("1.00"), Decimal("1.00")),
    ]

    batches = group_lines_by_supplier(rows)

    assert set(batches) == {"sup-a", "sup-b"}
    assert [line.name for line in batches["sup-a"].lines] == ["Pens", "Ink"]
    # unit price falls back to the product price
    assert batches["sup-b"].lines[0].price == Decimal("25.00")


def test_render_escapes_and_formats():
    lines = [SupplierLine(name="<b>Pens</b>", qty=2, price=Decimal("10"))]

    html = render_supplier_email("A & Sons", "abcdef1234567890", lines)

    assert "&lt;b&gt;Pens&lt;/b&gt;" in html
    assert "A &amp; Sons" in html
    assert "₪10.00" in html
    assert "Order abcdef12" in html
    assert supplier_subject("abcdef1234567890", lines) == "New order abcdef12 – 2 items"


def test_build_emails_skips_supplier_without_address(db, seed):
    order_id = _order(db, seed, [("pens", 2, Decimal("10.00")), ("chalk", 1, Decimal("3.50"))])

    emails, skipped = NotificationService.build_supplier_emails(db, order_id)

    assert [e.to for e in emails] == ["a@suppliers.test"]
    assert skipped == [seed["suppliers"]["silent"]]
    assert "Pens" in emails[0].html
    assert "Chalk" not in emails[0].html


def test_serial_fan_out_continues_after_a_failure(db, seed, monkeypatch):
    order_id = _order(db, seed, [("pens", 1, Decimal("10.00")), ("paper", 1, Decimal("25.00"))])
    attempted = []

    def flaky_send(self, to, subject, html):
        attempted.append(to)
        if to == "a@suppliers.test":
            raise RuntimeError("provider rejected")
        return {"id": "ok"}

    monkeypatch.setattr(EmailClient, "send", flaky_send)

    result = notify_suppliers_task.run(order_id, mode="serial", delay=0)

    assert sorted(attempted) == ["a@suppliers.test", "b@suppliers.test"]
    assert result["failed"] == ["a@suppliers.test"]
    assert result["sent"] == ["b@suppliers.test"]


def test_serial_fan_out_waits_between_sends(db, seed, sent_emails, monkeypatch):
    order_id = _order(db, seed, [("pens", 1, Decimal("10.00")), ("paper", 1, Decimal("25.00"))])
    pauses = []
    monkeypatch.setattr("supplyshop.tasks.notifications.time.sleep", pauses.append)

    result = notify_suppliers_task.run(order_id, mode="serial", delay=0.6)

    assert len(result["sent"]) == 2
    assert pauses == [0.6]


def test_parallel_fan_out(db, seed, sent_emails):
    order_id = _order(db, seed, [("pens", 1, Decimal("10.00")), ("paper", 1, Decimal("25.00"))])

    result = notify_suppliers_task.run(order_id, mode="parallel")

    assert sorted(result["queued"]) == ["a@suppliers.test", "b@suppliers.test"]
    assert sorted(e["to"] for e in sent_emails) == ["a@suppliers.test", "b@suppliers.test"]


def test_missing_api_key_skips_fan_out(db, seed, sent_emails):
    order_id = _order(db, seed, [("pens", 1, Decimal("10.00"))])

    assert NotificationService(api_key="").notify_suppliers(order_id) is False
    assert sent_emails == []


def test_notify_suppliers_enqueues(db, seed, sent_emails):
    order_id = _order(db, seed, [("paper", 3, Decimal("25.00"))])

    assert NotificationService(api_key="re_test").notify_suppliers(order_id) is True
    assert [e["to"] for e in sent_emails] == ["b@suppliers.test"]
    assert sent_emails[0]["subject"].endswith("3 items")
