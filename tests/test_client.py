import json
from decimal import Decimal

import pytest

from conftest import make_token
from supplyshop.client.api_client import ShopApiClient
from supplyshop.client.hybrid_cart import HybridCart
from supplyshop.client.local_cart import LocalCart
from supplyshop.domain.errors import CheckoutFailed, EmptyCartError, Unauthorized, ValidationError
from supplyshop.domain.session import session_from_token
from supplyshop.utils.optimistic import optimistic


@pytest.fixture
def api(client):
    return ShopApiClient(base_url="http://testserver", http=client)


def _session(user_id):
    return session_from_token(make_token(user_id))


def _product(seed, key, name, price):
    return {"id": seed["products"][key], "name": name, "price": price}


def test_optimistic_restores_on_failure():
    state = {"n": 1}

    def remote():
        raise RuntimeError("offline")

    with pytest.raises(RuntimeError):
        optimistic(
            snapshot=lambda: dict(state),
            apply=lambda: state.update(n=2),
            remote=remote,
            restore=lambda saved: state.update(saved),
        )

    assert state == {"n": 1}


def test_optimistic_returns_remote_result():
    state = []
    result = optimistic(lambda: list(state), lambda: state.append(1), lambda: "ok", lambda s: None)

    assert result == "ok"
    assert state == [1]


def test_guest_cart_is_empty_and_read_only(api, seed):
    cart = HybridCart(api)

    assert cart.mode == "guest"
    assert cart.count == 0
    with pytest.raises(Unauthorized):
        cart.add_item(_product(seed, "pens", "Pens", "10.00"))

    cart.update_quantity(seed["products"]["pens"], 1)
    cart.remove_item(seed["products"]["pens"])
    cart.clear()
    assert cart.lines == []


def test_signed_in_cart_round_trip(api, seed):
    cart = HybridCart(api, session=_session("client-user"))
    pens = _product(seed, "pens", "Pens", "10.00")
    paper = _product(seed, "paper", "Paper", "25.00")

    cart.add_item(pens)
    cart.add_item(pens)
    cart.add_item(paper)
    assert cart.count == 3
    assert cart.total == Decimal("45.00")

    cart.update_quantity(pens["id"], -2)
    assert [line.id for line in cart.lines] == [paper["id"]]

    cart.add_item(pens, 2)
    result = cart.checkout()

    assert result["ok"] is True
    assert result["total"] == 45.0
    assert cart.lines == []
    # server cart was cleared by the checkout
    cart.refresh()
    assert cart.lines == []


def test_auth_change_switches_modes(api, seed):
    cart = HybridCart(api)
    cart.on_auth_change("SIGNED_IN", _session("switcher"))
    cart.add_item(_product(seed, "paper", "Paper", "25.00"))
    assert cart.mode == "db"
    assert cart.count == 1

    cart.on_auth_change("SIGNED_OUT", None)
    assert cart.mode == "guest"
    assert cart.lines == []

    # the server cart survives sign-out
    cart.on_auth_change("SIGNED_IN", _session("switcher"))
    assert cart.count == 1


class FailingApi:
    def __init__(self, view=None, error=None):
        self.view = view or {"items": []}
        self.error = error or ValidationError("rejected")

    def get_cart(self, token):
        return self.view

    def add_item(self, token, product_id, quantity=1):
        raise self.error

    def update_quantity(self, token, product_id, delta):
        raise self.error

    def remove_item(self, token, product_id):
        raise self.error

    def clear_cart(self, token):
        raise self.error

    def checkout(self, token, lines):
        raise CheckoutFailed()


def _view(*items):
    return {"items": [{"product_id": pid, "name": pid, "price": "5.00", "quantity": qty} for pid, qty in items]}


def test_failed_mutations_roll_back():
    cart = HybridCart(FailingApi(view=_view(("p1", 2), ("p2", 1))), session=_session("rollback"))
    before = [(line.id, line.quantity) for line in cart.lines]

    with pytest.raises(ValidationError):
        cart.add_item({"id": "p3", "name": "New", "price": "1.00"})
    with pytest.raises(ValidationError):
        cart.update_quantity("p1", -2)
    with pytest.raises(ValidationError):
        cart.remove_item("p2")
    with pytest.raises(ValidationError):
        cart.clear()

    assert [(line.id, line.quantity) for line in cart.lines] == before


def test_failed_checkout_keeps_lines():
    cart = HybridCart(FailingApi(view=_view(("p1", 1))), session=_session("keep"))

    with pytest.raises(CheckoutFailed):
        cart.checkout()

    assert cart.count == 1


def test_checkout_of_empty_cart(api):
    cart = HybridCart(api, session=_session("empty-client"))

    with pytest.raises(EmptyCartError):
        cart.checkout()
    with pytest.raises(EmptyCartError):
        api.checkout(make_token("empty-client"), [])


def test_api_client_maps_unauthorized(api):
    with pytest.raises(Unauthorized):
        api.get_cart("garbage")


def test_local_cart(tmp_path, seed):
    path = tmp_path / "cart.json"
    cart = LocalCart(str(path))

    cart.add_item({"id": "p1", "name": "Pens", "price": "10.00", "image_url": None})
    cart.add_item({"id": "p1", "name": "Pens", "price": "10.00"}, 2)
    cart.add_item({"id": "p2", "name": "Paper", "price": "25.00"})
    assert cart.count == 4
    assert cart.total == Decimal("55.00")

    reloaded = LocalCart(str(path))
    assert [(line.id, line.quantity) for line in reloaded.lines] == [("p1", 3), ("p2", 1)]

    reloaded.update_quantity("p1", -3)
    assert [line.id for line in reloaded.lines] == ["p2"]
    reloaded.remove_item("p2")
    assert reloaded.count == 0

    reloaded.add_item({"id": "p3", "price": "1"})
    reloaded.clear()
    assert json.loads(path.read_text()) == []


def test_local_cart_ignores_corrupt_file(tmp_path):
    path = tmp_path / "cart.json"
    path.write_text("{not json")

    assert LocalCart(str(path)).lines == []


class RecordingHttp:
    def __init__(self):
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs.get("params")))
        return FakeResponse()


class FakeResponse:
    status_code = 200
    content = b"[]"

    def json(self):
        return []


def test_category_filter_is_sent_as_query_param():
    http = RecordingHttp()
    api = ShopApiClient(base_url="http://shop.local", http=http)

    api.list_products("a&b=c")
    api.list_products()

    assert http.calls == [
        ("GET", "http://shop.local/products", {"category": "a&b=c"}),
        ("GET", "http://shop.local/products", None),
    ]
