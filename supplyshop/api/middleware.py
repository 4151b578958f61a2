# supplyshop/api/middleware.py
from urllib.parse import urlencode

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

from supplyshop.api.deps import token_from_request
from supplyshop.data.database import SessionLocal
from supplyshop.domain.errors import Unauthorized
from supplyshop.domain.session import session_from_token
from supplyshop.repos.profile_repo import ProfileRepo
from supplyshop.utils.logging import get_logger

logger = get_logger(__name__)


class AdminGateMiddleware(BaseHTTPMiddleware):
    """
    Redirects /admin/* requests without an admin session to the login path,
    keeping the original path in ?redirectTo=. UX only: the admin routers
    still check the role themselves.
    """

    def __init__(self, app, session_factory=None, prefix: str = "/admin", login_path: str = "/admin/login"):
        super().__init__(app)
        self.session_factory = session_factory
        self.prefix = prefix
        self.login_path = login_path

    def _guarded(self, path: str) -> bool:
        if path == self.login_path or path.startswith(self.login_path + "/"):
            return False
        return path == self.prefix or path.startswith(self.prefix + "/")

    def _is_admin(self, token: str | None) -> bool:
        try:
            session = session_from_token(token)
        except Unauthorized:
            return False
        db = (self.session_factory or SessionLocal)()
        try:
            profile = ProfileRepo(db).get_profile(session.user_id)
            return profile is not None and profile.role == "admin"
        finally:
            db.close()

    async def dispatch(self, request, call_next):
        path = request.url.path
        if not self._guarded(path):
            return await call_next(request)

        if await run_in_threadpool(self._is_admin, token_from_request(request)):
            return await call_next(request)

        target = path + (f"?{request.url.query}" if request.url.query else "")
        logger.info(f"Admin gate: redirecting {target} to login")
        return RedirectResponse(f"{self.login_path}?{urlencode({'redirectTo': target})}", status_code=303)
