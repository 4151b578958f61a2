# supplyshop/domain/session.py
from dataclasses import dataclass
from typing import Optional

import jwt

from supplyshop.domain.errors import Unauthorized
from supplyshop.utils.settings import AUTH_JWT_AUDIENCE, AUTH_JWT_SECRET

ALGO = "HS256"


@dataclass(frozen=True)
class SessionContext:
    """Who is calling. Built once per request and passed down explicitly."""

    user_id: str
    access_token: str
    email: Optional[str] = None
    role: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, AUTH_JWT_SECRET, algorithms=[ALGO], audience=AUTH_JWT_AUDIENCE)
    except jwt.PyJWTError:
        raise Unauthorized()


def session_from_token(token: str | None) -> SessionContext:
    if not token:
        raise Unauthorized()
    payload = decode_access_token(token)
    sub = payload.get("sub")
    if not sub:
        raise Unauthorized()
    return SessionContext(user_id=str(sub), access_token=token, email=payload.get("email"))
