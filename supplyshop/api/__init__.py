# supplyshop/api/__init__.py
from fastapi import FastAPI

from supplyshop import __version__
from supplyshop.api.errors import register_error_handlers
from supplyshop.api.middleware import AdminGateMiddleware
from supplyshop.api.routers import admin, auth, cart, catalog, health, me, orders


def create_app(session_factory=None) -> FastAPI:
    app = FastAPI(title="Supply Shop", version=__version__)

    register_error_handlers(app)
    app.add_middleware(AdminGateMiddleware, session_factory=session_factory)

    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(cart.router)
    app.include_router(orders.router)
    app.include_router(auth.router)
    app.include_router(me.router)
    app.include_router(admin.router)

    return app
