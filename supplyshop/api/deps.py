# supplyshop/api/deps.py
from dataclasses import replace

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from supplyshop.data.database import get_db
from supplyshop.domain.errors import Forbidden, Unauthorized
from supplyshop.domain.session import SessionContext, session_from_token
from supplyshop.services.auth_client import AuthClient
from supplyshop.services.lock_service import LockService
from supplyshop.services.profile_service import ProfileService
from supplyshop.services.storage_client import StorageClient

ACCESS_COOKIE = "sb-access-token"
REFRESH_COOKIE = "sb-refresh-token"
CODE_VERIFIER_COOKIE = "sb-code-verifier"


def token_from_request(request: Request) -> str | None:
    """Bearer header wins over the session cookie."""
    header = request.headers.get("authorization") or ""
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return request.cookies.get(ACCESS_COOKIE)


def get_optional_session(request: Request) -> SessionContext | None:
    token = token_from_request(request)
    if not token:
        return None
    try:
        return session_from_token(token)
    except Unauthorized:
        return None


def require_session(session: SessionContext | None = Depends(get_optional_session)) -> SessionContext:
    if session is None:
        raise Unauthorized()
    return session


def require_admin(
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
) -> SessionContext:
    role = ProfileService(db).get_role(session.user_id)
    if role != "admin":
        raise Forbidden()
    return replace(session, role=role)


def get_lock_service() -> LockService:
    return LockService()


def get_auth_client() -> AuthClient:
    return AuthClient()


def get_storage_client() -> StorageClient:
    return StorageClient()
