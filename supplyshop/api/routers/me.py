# supplyshop/api/routers/me.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from supplyshop.api.deps import get_auth_client, require_session
from supplyshop.data.database import get_db
from supplyshop.domain.schemas import EmailChangeIn, ProfileIn, ProfileOut
from supplyshop.domain.session import SessionContext
from supplyshop.services.auth_client import AuthClient
from supplyshop.services.profile_service import ProfileService

router = APIRouter(prefix="/me", tags=["me"])

EMAIL_CHANGE_CALLBACK = "/auth/callback?next=/order?verified=1"


@router.get("/profile", response_model=ProfileOut)
def get_profile(
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    return ProfileService(db).get_profile(session.user_id)


@router.put("/profile", response_model=ProfileOut)
def update_profile(
    payload: ProfileIn,
    session: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    return ProfileService(db).upsert_profile(session.user_id, payload)


@router.put("/email")
def change_email(
    payload: EmailChangeIn,
    session: SessionContext = Depends(require_session),
    auth_client: AuthClient = Depends(get_auth_client),
):
    """The provider mails a confirmation link that lands on /auth/callback."""
    redirect_to = None
    if payload.redirect_base:
        redirect_to = payload.redirect_base.rstrip("/") + EMAIL_CHANGE_CALLBACK
    auth_client.update_email(session.access_token, payload.email, redirect_to)
    return {"ok": True, "pending": payload.email}
