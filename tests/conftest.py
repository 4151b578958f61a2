import os
import tempfile
import time
import uuid
from decimal import Decimal

# settings are read at import time
_tmp = tempfile.mkdtemp(prefix="supplyshop-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp, 'shop.db')}"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["AUTH_JWT_SECRET"] = "test-secret"
os.environ["AUTH_JWT_AUDIENCE"] = "authenticated"
os.environ["RESEND_API_KEY"] = "re_test"
os.environ["SESSION_COOKIE_SECURE"] = "0"
os.environ["SUPPLIER_EMAIL_DELAY_SECONDS"] = "0"
os.environ["SUPPLIER_EMAIL_MODE"] = "serial"

import jwt
import pytest
from fastapi.testclient import TestClient

import supplyshop.data.models  # noqa: F401
from supplyshop.api import create_app
from supplyshop.api.deps import get_auth_client, get_lock_service, get_storage_client
from supplyshop.data.database import Base, SessionLocal, engine
from supplyshop.data.models import CategoryModel, ProductModel, ProfileModel, SupplierModel
from supplyshop.services.email_client import EmailClient


def make_token(user_id: str, email: str | None = None, ttl: int = 3600) -> str:
    payload = {"sub": user_id, "aud": "authenticated", "exp": int(time.time()) + ttl}
    if email:
        payload["email"] = email
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


class FakeLockService:
    def __init__(self, held: bool = False):
        self.held = held
        self.acquired = []
        self.released = []

    def acquire_checkout_lock(self, user_id, ttl):
        if self.held:
            return None
        self.acquired.append(user_id)
        return "token"

    def release_checkout_lock(self, user_id, token):
        self.released.append((user_id, token))


class FakeAuthClient:
    def __init__(self):
        self.signed_out = []
        self.email_updates = []
        self.users = {}

    def sign_up(self, email, password, redirect_to=None):
        user_id = str(uuid.uuid4())
        self.users[email] = user_id
        return {"id": user_id, "email": email}

    def sign_in_with_password(self, email, password):
        return {"access_token": make_token(self.users[email], email), "refresh_token": "r", "expires_in": 3600}

    def exchange_code_for_session(self, code, code_verifier=None):
        return {"access_token": make_token("user-from-code"), "refresh_token": "r", "expires_in": 3600}

    def update_email(self, access_token, email, redirect_to=None):
        self.email_updates.append((email, redirect_to))
        return {}

    def sign_out(self, access_token):
        self.signed_out.append(access_token)


class FakeStorageClient:
    def __init__(self):
        self.uploads = []

    def upload_image(self, filename, data, content_type, access_token):
        self.uploads.append((filename, len(data)))
        return f"https://storage.test/product-images/{filename}"


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    def fake_send(self, to, subject, html):
        sent.append({"to": to, "subject": subject, "html": html})
        return {"id": "email"}

    monkeypatch.setattr(EmailClient, "send", fake_send)
    return sent


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def auth_client():
    return FakeAuthClient()


@pytest.fixture
def storage_client():
    return FakeStorageClient()


@pytest.fixture
def app(lock_service, auth_client, storage_client, sent_emails):
    app = create_app()
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_auth_client] = lambda: auth_client
    app.dependency_overrides[get_storage_client] = lambda: storage_client
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def seed(db):
    """Catalog shared by most tests: two suppliers, one without e-mail."""

    def _seed():
        a = SupplierModel(name="Supplier A", email="a@suppliers.test")
        b = SupplierModel(name="Supplier B", email="b@suppliers.test")
        silent = SupplierModel(name="No Mail", email=None)
        db.add_all([a, b, silent])
        db.flush()
        cat = CategoryModel(name="Stationery", slug="stationery")
        db.add(cat)
        db.flush()
        p1 = ProductModel(name="Pens", price=Decimal("10.00"), supplier_id=a.id, category_id=cat.id)
        p2 = ProductModel(name="Paper", price=Decimal("25.00"), supplier_id=b.id)
        p3 = ProductModel(name="Chalk", price=Decimal("3.50"), supplier_id=silent.id)
        db.add_all([p1, p2, p3])
        db.commit()
        return {
            "suppliers": {"a": a.id, "b": b.id, "silent": silent.id},
            "category": cat.id,
            "products": {"pens": p1.id, "paper": p2.id, "chalk": p3.id},
        }

    return _seed()


@pytest.fixture
def admin_id(db):
    profile = ProfileModel(id=str(uuid.uuid4()), role="admin", full_name="Admin")
    db.add(profile)
    db.commit()
    return profile.id


@pytest.fixture
def customer_id(db):
    profile = ProfileModel(id=str(uuid.uuid4()), role="customer", institution_name="Yeshiva Test")
    db.add(profile)
    db.commit()
    return profile.id
