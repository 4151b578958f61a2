# supplyshop/services/storage_client.py
import secrets
import time

import requests

from supplyshop.domain.errors import ValidationError
from supplyshop.utils.http import check_response
from supplyshop.utils.retry import http_retry
from supplyshop.utils.settings import (
    AUTH_ANON_KEY,
    HTTP_TIMEOUT_SECONDS,
    MAX_IMAGE_BYTES,
    STORAGE_BUCKET,
    STORAGE_URL,
)
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)


def image_object_name(filename: str | None) -> str:
    ext = (filename or "").rsplit(".", 1)[-1].lower() if filename and "." in filename else "jpg"
    return f"{int(time.time() * 1000)}_{secrets.token_hex(5)}.{ext}"


class StorageClient:
    """Uploads product images to the hosted object storage bucket."""

    def __init__(self, base_url: str | None = None, bucket: str | None = None,
                 api_key: str | None = None, timeout: float = HTTP_TIMEOUT_SECONDS):
        self.base_url = (base_url or STORAGE_URL).rstrip("/")
        self.bucket = bucket or STORAGE_BUCKET
        self.api_key = api_key if api_key is not None else AUTH_ANON_KEY
        self.timeout = timeout

    def public_url(self, name: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{name}"

    @http_retry()
    def _put(self, name: str, data: bytes, content_type: str, access_token: str):
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{name}"
        logger.info(f"StorageClient POST {url} ({len(data)} bytes)")
        resp = requests.post(
            url,
            headers={
                "apikey": self.api_key,
                "Authorization": f"Bearer {access_token}",
                "Content-Type": content_type,
                "x-upsert": "false",
            },
            data=data,
            timeout=self.timeout,
        )
        check_response(resp, "object storage")

    def upload_image(self, filename: str | None, data: bytes, content_type: str | None,
                     access_token: str) -> str:
        if len(data) > MAX_IMAGE_BYTES:
            raise ValidationError("התמונה גדולה מדי (מעל 5MB)")
        if not data:
            raise ValidationError("קובץ התמונה ריק")
        name = image_object_name(filename)
        self._put(name, data, content_type or "application/octet-stream", access_token)
        return self.public_url(name)
