# supplyshop/utils/http.py
import requests

from supplyshop.domain.errors import ExternalServiceError
from supplyshop.utils.retry import RetryableHTTPError


def check_response(resp: requests.Response, service: str) -> requests.Response:
    """5xx/429 -> RetryableHTTPError (picked up by http_retry), other 4xx -> ExternalServiceError."""
    if resp.status_code >= 500 or resp.status_code == 429:
        raise RetryableHTTPError(f"{service} responded {resp.status_code}", response=resp)
    if resp.status_code >= 400:
        raise ExternalServiceError(f"{service} responded {resp.status_code}: {error_text(resp)}")
    return resp


def error_text(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return str(body)[:200]
