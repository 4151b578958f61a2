# supplyshop/client/api_client.py
from typing import Iterable, List, Tuple

import requests

from supplyshop.domain.errors import error_from_code
from supplyshop.utils.http import error_text
from supplyshop.utils.retry import RetryableHTTPError, http_retry
from supplyshop.utils.settings import HTTP_TIMEOUT_SECONDS, SHOP_API_URL
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)


class ShopApiClient:
    """
    Thin HTTP client for the shop API. Error responses come back as the
    matching domain error (401 -> Unauthorized, empty cart -> EmptyCartError...).
    Only reads are retried; cart mutations and checkout are sent once.
    """

    def __init__(self, base_url: str | None = None, timeout: float = HTTP_TIMEOUT_SECONDS,
                 http: requests.Session | None = None):
        self.base_url = (base_url or SHOP_API_URL).rstrip("/")
        self.timeout = timeout
        self.http = http or requests.Session()

    def _headers(self, token: str | None) -> dict:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _send(self, method: str, path: str, token: str | None, json=None, params=None) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.info(f"ShopApiClient {method} {url}")
        return self.http.request(method, url, headers=self._headers(token), json=json, params=params,
                                 timeout=self.timeout)

    @staticmethod
    def _raise_for_error(resp: requests.Response):
        if resp.status_code < 400:
            return
        try:
            body = resp.json()
        except ValueError:
            body = {}
        code = body.get("code") if isinstance(body, dict) else None
        message = body.get("error") if isinstance(body, dict) else None
        raise error_from_code(code, message or error_text(resp))

    @http_retry()
    def _get(self, path: str, token: str | None = None, params=None):
        resp = self._send("GET", path, token, params=params)
        if resp.status_code >= 500 or resp.status_code == 429:
            raise RetryableHTTPError(f"shop api responded {resp.status_code}", response=resp)
        self._raise_for_error(resp)
        return resp.json()

    def _call(self, method: str, path: str, token: str | None = None, json=None):
        resp = self._send(method, path, token, json=json)
        self._raise_for_error(resp)
        return resp.json() if resp.content else None

    # catalog
    def list_products(self, category: str | None = None) -> List[dict]:
        return self._get("/products", params={"category": category} if category else None)

    def category_tree(self) -> List[dict]:
        return self._get("/categories/tree")

    # cart
    def get_cart(self, token: str) -> dict:
        return self._get("/cart", token)

    def add_item(self, token: str, product_id: str, quantity: int = 1) -> dict:
        return self._call("POST", "/cart/items", token, json={"product_id": product_id, "quantity": quantity})

    def update_quantity(self, token: str, product_id: str, delta: int) -> dict:
        return self._call("PATCH", f"/cart/items/{product_id}", token, json={"delta": delta})

    def remove_item(self, token: str, product_id: str) -> dict:
        return self._call("DELETE", f"/cart/items/{product_id}", token)

    def clear_cart(self, token: str) -> dict:
        return self._call("DELETE", "/cart", token)

    # orders
    def checkout(self, token: str, lines: Iterable[Tuple[str, int]] = ()) -> dict:
        body = {"cart": [{"id": pid, "quantity": qty} for pid, qty in lines]}
        return self._call("POST", "/api/orders/checkout", token, json=body)

    def list_orders(self, token: str) -> List[dict]:
        return self._get("/orders", token)
