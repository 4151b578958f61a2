# supplyshop/services/email_client.py
import requests

from supplyshop.utils.http import check_response
from supplyshop.utils.retry import http_retry
from supplyshop.utils.settings import (
    HTTP_TIMEOUT_SECONDS,
    RESEND_API_KEY,
    RESEND_API_URL,
    RESEND_FROM,
)
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)


class EmailClient:
    """Transactional e-mail over the Resend HTTP API."""

    def __init__(self, api_key: str | None = None, url: str | None = None, sender: str | None = None,
                 timeout: float = HTTP_TIMEOUT_SECONDS):
        self.api_key = api_key if api_key is not None else RESEND_API_KEY
        self.url = url or RESEND_API_URL
        self.sender = sender or RESEND_FROM
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @http_retry()
    def send(self, to: str, subject: str, html: str) -> dict:
        logger.info(f"EmailClient POST {self.url} to={to}")
        resp = requests.post(
            self.url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            json={"from": self.sender, "to": to, "subject": subject, "html": html},
            timeout=self.timeout,
        )
        check_response(resp, "email provider")
        return resp.json()
