import uuid

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql

from conftest import auth_headers
from supplyshop.data.models import CartItemModel, CartModel
from supplyshop.services.cart_service import CartService


def _items(db, user_id):
    cart_id = db.execute(select(CartModel.id).where(CartModel.user_id == user_id)).scalar_one()
    return list(db.execute(select(CartItemModel).where(CartItemModel.cart_id == cart_id)).scalars())


def test_get_or_create_cart_is_idempotent(db):
    svc = CartService(db)
    user_id = str(uuid.uuid4())

    first = svc.get_or_create_cart(user_id)
    second = svc.get_or_create_cart(user_id)

    assert first == second
    assert db.execute(select(func.count()).select_from(CartModel)).scalar_one() == 1


def test_adding_same_product_twice_keeps_one_line(client, seed, db):
    user_id = str(uuid.uuid4())
    pens = seed["products"]["pens"]

    for _ in range(2):
        r = client.post("/cart/items", json={"product_id": pens}, headers=auth_headers(user_id))
        assert r.status_code == 200

    items = _items(db, user_id)
    assert len(items) == 1
    assert items[0].quantity == 2

    body = r.json()
    assert body["count"] == 2
    assert len(body["items"]) == 1


def test_add_sums_quantities(db, seed):
    svc = CartService(db)
    cart_id = svc.get_or_create_cart("u-1")
    paper = seed["products"]["paper"]

    svc.add_item(cart_id, paper, 2)
    svc.add_item(cart_id, paper, 3)

    view = svc.get_cart_view("u-1")
    assert view["items"][0]["quantity"] == 5
    assert view["count"] == 5


def test_update_quantity_removes_line_at_zero(client, seed, db):
    user_id = str(uuid.uuid4())
    pens = seed["products"]["pens"]
    headers = auth_headers(user_id)
    client.post("/cart/items", json={"product_id": pens, "quantity": 2}, headers=headers)

    r = client.patch(f"/cart/items/{pens}", json={"delta": -1}, headers=headers)
    assert r.json()["items"][0]["quantity"] == 1

    r = client.patch(f"/cart/items/{pens}", json={"delta": -5}, headers=headers)
    assert r.status_code == 200
    assert r.json()["items"] == []
    assert _items(db, user_id) == []


def test_update_quantity_increments(client, seed):
    headers = auth_headers(str(uuid.uuid4()))
    pens = seed["products"]["pens"]
    client.post("/cart/items", json={"product_id": pens}, headers=headers)

    r = client.patch(f"/cart/items/{pens}", json={"delta": 3}, headers=headers)

    assert r.json()["items"][0]["quantity"] == 4


def test_remove_and_clear(client, seed):
    headers = auth_headers(str(uuid.uuid4()))
    pens, paper = seed["products"]["pens"], seed["products"]["paper"]
    client.post("/cart/items", json={"product_id": pens}, headers=headers)
    client.post("/cart/items", json={"product_id": paper}, headers=headers)

    r = client.delete(f"/cart/items/{pens}", headers=headers)
    assert [i["product_id"] for i in r.json()["items"]] == [paper]

    r = client.delete("/cart", headers=headers)
    assert r.json()["items"] == []
    assert r.json()["count"] == 0


def test_cart_view_total(client, seed):
    headers = auth_headers(str(uuid.uuid4()))
    client.post("/cart/items", json={"product_id": seed["products"]["pens"], "quantity": 2}, headers=headers)
    client.post("/cart/items", json={"product_id": seed["products"]["paper"]}, headers=headers)

    body = client.get("/cart", headers=headers).json()

    assert float(body["total"]) == 45.0
    assert body["count"] == 3


def test_guest_add_is_rejected_without_writes(client, seed, db):
    r = client.post("/cart/items", json={"product_id": seed["products"]["pens"]})

    assert r.status_code == 401
    assert r.json()["error"]
    assert db.execute(select(func.count()).select_from(CartModel)).scalar_one() == 0
    assert db.execute(select(func.count()).select_from(CartItemModel)).scalar_one() == 0


def test_invalid_token_is_a_guest(client, seed):
    r = client.get("/cart", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_unknown_product_is_rejected(client, seed):
    r = client.post("/cart/items", json={"product_id": "missing"}, headers=auth_headers("u-2"))

    assert r.status_code == 400
    assert r.json()["code"] == "product_not_found"


def test_quantity_below_one_is_rejected(client, seed):
    r = client.post(
        "/cart/items",
        json={"product_id": seed["products"]["pens"], "quantity": 0},
        headers=auth_headers("u-3"),
    )
    assert r.status_code == 400


def test_repeated_decrements_remove_the_line(db, seed):
    svc = CartService(db)
    cart_id = svc.get_or_create_cart("u-dec")
    pens = seed["products"]["pens"]
    svc.add_item(cart_id, pens, 2)

    svc.update_quantity(cart_id, pens, -1)
    svc.update_quantity(cart_id, pens, -1)
    svc.update_quantity(cart_id, pens, -1)

    assert svc.get_cart_view("u-dec")["items"] == []


def test_update_quantity_locks_the_line(db, seed, monkeypatch):
    svc = CartService(db)
    cart_id = svc.get_or_create_cart("u-lock-line")
    pens = seed["products"]["pens"]
    svc.add_item(cart_id, pens, 2)

    statements = []
    execute = db.execute

    def recording_execute(statement, *args, **kwargs):
        statements.append(statement)
        return execute(statement, *args, **kwargs)

    monkeypatch.setattr(db, "execute", recording_execute)

    svc.update_quantity(cart_id, pens, -1)

    compiled = [str(s.compile(dialect=postgresql.dialect())) for s in statements]
    assert "FOR UPDATE" in compiled[0]
    assert not any("quantity +" in sql for sql in compiled)
