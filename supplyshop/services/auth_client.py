# supplyshop/services/auth_client.py
import requests

from supplyshop.utils.http import check_response
from supplyshop.utils.retry import http_retry
from supplyshop.utils.settings import AUTH_ANON_KEY, AUTH_URL, HTTP_TIMEOUT_SECONDS
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)


class AuthClient:
    """
    Thin client for the hosted identity provider (GoTrue-compatible REST API).
    Passwords, e-mail verification and token issuing all live on the provider.
    """

    def __init__(self, base_url: str | None = None, api_key: str | None = None,
                 timeout: float = HTTP_TIMEOUT_SECONDS):
        self.base_url = (base_url or AUTH_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else AUTH_ANON_KEY
        self.timeout = timeout

    def _headers(self, access_token: str | None = None) -> dict:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _url(self, path: str) -> str:
        return f"{self.base_url}/auth/v1/{path.lstrip('/')}"

    @http_retry()
    def sign_up(self, email: str, password: str, redirect_to: str | None = None) -> dict:
        url = self._url("signup")
        logger.info(f"AuthClient POST {url}")
        params = {"redirect_to": redirect_to} if redirect_to else None
        resp = requests.post(url, headers=self._headers(), params=params,
                             json={"email": email, "password": password}, timeout=self.timeout)
        check_response(resp, "identity provider")
        body = resp.json()
        # with e-mail confirmation on, the provider returns the bare user object
        return body.get("user") or body

    @http_retry()
    def sign_in_with_password(self, email: str, password: str) -> dict:
        url = self._url("token")
        logger.info(f"AuthClient POST {url} (password)")
        resp = requests.post(url, headers=self._headers(), params={"grant_type": "password"},
                             json={"email": email, "password": password}, timeout=self.timeout)
        check_response(resp, "identity provider")
        return resp.json()

    @http_retry()
    def exchange_code_for_session(self, code: str, code_verifier: str | None = None) -> dict:
        url = self._url("token")
        logger.info(f"AuthClient POST {url} (pkce)")
        resp = requests.post(url, headers=self._headers(), params={"grant_type": "pkce"},
                             json={"auth_code": code, "code_verifier": code_verifier or ""},
                             timeout=self.timeout)
        check_response(resp, "identity provider")
        return resp.json()

    @http_retry()
    def update_email(self, access_token: str, email: str, redirect_to: str | None = None) -> dict:
        url = self._url("user")
        params = {"redirect_to": redirect_to} if redirect_to else None
        resp = requests.put(url, headers=self._headers(access_token), params=params,
                            json={"email": email}, timeout=self.timeout)
        check_response(resp, "identity provider")
        return resp.json()

    def sign_out(self, access_token: str):
        url = self._url("logout")
        try:
            resp = requests.post(url, headers=self._headers(access_token), timeout=self.timeout)
            check_response(resp, "identity provider")
        except Exception as e:
            # the local cookies are cleared regardless
            logger.warning(f"Provider sign-out failed: {e}")
