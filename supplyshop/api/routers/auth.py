# supplyshop/api/routers/auth.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from supplyshop.api.deps import (
    ACCESS_COOKIE,
    CODE_VERIFIER_COOKIE,
    REFRESH_COOKIE,
    get_auth_client,
    token_from_request,
)
from supplyshop.data.database import get_db
from supplyshop.domain.errors import ExternalServiceError, Forbidden, ShopError, Unauthorized
from supplyshop.domain.schemas import AuthEventIn, LoginIn, ProfileOut, SignupIn
from supplyshop.domain.session import session_from_token
from supplyshop.services.auth_client import AuthClient
from supplyshop.services.profile_service import ProfileService
from supplyshop.utils.settings import SESSION_COOKIE_SECURE
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])

DEFAULT_NEXT = "/order?verified=1"
DEFAULT_ADMIN_NEXT = "/admin/orders"


def safe_next(path: Optional[str], default: str) -> str:
    # only same-site relative paths, never //host or absolute urls
    if not path or not path.startswith("/") or path.startswith("//"):
        return default
    return path


def set_session_cookies(response, session: dict):
    access = session.get("access_token")
    if not access:
        raise Unauthorized()
    max_age = session.get("expires_in")
    response.set_cookie(ACCESS_COOKIE, access, max_age=max_age, httponly=True,
                        secure=SESSION_COOKIE_SECURE, samesite="lax")
    if session.get("refresh_token"):
        response.set_cookie(REFRESH_COOKIE, session["refresh_token"], httponly=True,
                            secure=SESSION_COOKIE_SECURE, samesite="lax")


def clear_session_cookies(response):
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)


@router.post("/auth/signup", response_model=ProfileOut, status_code=201)
def signup(
    payload: SignupIn,
    db: Session = Depends(get_db),
    auth_client: AuthClient = Depends(get_auth_client),
):
    return ProfileService(db, auth_client=auth_client).signup(payload)


@router.get("/auth/callback")
def auth_callback(
    request: Request,
    code: Optional[str] = None,
    next_path: Optional[str] = Query(None, alias="next"),
    auth_client: AuthClient = Depends(get_auth_client),
):
    """Finishes e-mail verification / e-mail change links, then redirects to ?next."""
    response = RedirectResponse(safe_next(next_path, DEFAULT_NEXT), status_code=303)
    if code:
        session = auth_client.exchange_code_for_session(code, request.cookies.get(CODE_VERIFIER_COOKIE))
        set_session_cookies(response, session)
        response.delete_cookie(CODE_VERIFIER_COOKIE)
    return response


@router.post("/auth/callback")
def auth_state_changed(payload: AuthEventIn, request: Request, auth_client: AuthClient = Depends(get_auth_client)):
    """
    Mirrors client-side auth events into the server-readable session cookies.
    This is the only place the server-side session changes.
    """
    response = JSONResponse({"ok": True})
    try:
        if payload.event in ("SIGNED_IN", "TOKEN_REFRESHED"):
            if payload.session is None:
                raise Unauthorized("missing session")
            # refuse tokens we could not verify ourselves
            session_from_token(payload.session.access_token)
            set_session_cookies(response, payload.session.model_dump())
        elif payload.event == "SIGNED_OUT":
            token = token_from_request(request)
            if token:
                auth_client.sign_out(token)
            clear_session_cookies(response)
    except ShopError as e:
        return JSONResponse({"ok": False, "error": e.message}, status_code=400)
    return response


@router.get("/admin/login")
def admin_login_page(redirectTo: Optional[str] = Query(None)):
    return {"login": "required", "redirectTo": safe_next(redirectTo, DEFAULT_ADMIN_NEXT)}


@router.post("/admin/login")
def admin_login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    auth_client: AuthClient = Depends(get_auth_client),
):
    try:
        session = auth_client.sign_in_with_password(payload.email, payload.password)
    except ExternalServiceError:
        raise Unauthorized("אימייל או סיסמה שגויים")
    user = session_from_token(session.get("access_token"))

    if ProfileService(db, auth_client=auth_client).get_role(user.user_id) != "admin":
        auth_client.sign_out(user.access_token)
        logger.info(f"Admin login refused for non-admin user {user.user_id}")
        raise Forbidden()

    response = JSONResponse({"ok": True, "redirectTo": safe_next(payload.redirectTo, DEFAULT_ADMIN_NEXT)})
    set_session_cookies(response, session)
    return response
