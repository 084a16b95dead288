"""Pytest fixtures for storefront tests."""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "storefront-test-secret-0123456789abcdef")

import uuid
from decimal import Decimal

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import storefront.data.models  # noqa: F401
from storefront.api import create_app
from storefront.api.deps import get_blob_store, get_lock_service
from storefront.data.database import Base, get_db, make_engine
from storefront.data.models.product import ProductImageModel, ProductModel
from storefront.domain.errors import NotFoundError
from storefront.services.blob_store import BlobObject
from storefront.utils import settings

API = settings.API_PREFIX

SHIPPING = {
    "address": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "country": "US",
    "postalCode": "62701",
    "phone": "555-0100",
}


class FakeLockService:
    """In-memory stand-in for the Redis checkout lock."""

    def __init__(self):
        self.held = {}
        self.acquired = []

    def acquire_checkout_lock(self, user_id, ttl):
        if user_id in self.held:
            return None
        token = uuid.uuid4().hex
        self.held[user_id] = token
        self.acquired.append(user_id)
        return token

    def release_checkout_lock(self, user_id, token):
        if self.held.get(user_id) == token:
            del self.held[user_id]
            return True
        return False


class FakeBlobStore:
    """In-memory stand-in for the S3 bucket."""

    def __init__(self):
        self.objects = {}

    def upload(self, data, content_type, filename=""):
        key = f"{len(self.objects) + 1}-{filename}"
        self.objects[key] = (data, content_type)
        return {"url": f"https://blobs.test/{key}", "key": key}

    def fetch_stream(self, key):
        if key not in self.objects:
            raise NotFoundError("File not found")
        data, content_type = self.objects[key]
        return BlobObject(chunks=iter([data]), content_type=content_type, content_length=len(data))

    def delete(self, key):
        self.objects.pop(key, None)


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def lock_service():
    return FakeLockService()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def make_product(session_factory):
    """Create a product in its own session and return its id."""

    def _make(name="Widget", price="10.00", stock=5, category="Electronics", image="", seller="seller-1"):
        session = session_factory()
        try:
            product = ProductModel(
                name=name,
                description=f"{name} description",
                price=Decimal(price),
                category=category,
                stock=stock,
                seller_id=seller,
                ratings=0.0,
                num_reviews=0,
                is_active=True,
                images=[ProductImageModel(url=image)] if image else [],
            )
            session.add(product)
            session.commit()
            return product.id
        finally:
            session.close()

    return _make


@pytest.fixture
def stock_of(session_factory):
    def _stock(product_id):
        session = session_factory()
        try:
            return session.get(ProductModel, product_id).stock
        finally:
            session.close()

    return _stock


@pytest.fixture
def app(session_factory, lock_service, blob_store):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def make_token(user_id, role="user", email=None, name=None):
    claims = {"sub": user_id, "role": role}
    if email:
        claims["email"] = email
    if name:
        claims["name"] = name
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def auth(user_id, role="user", **claims):
    return {"Authorization": f"Bearer {make_token(user_id, role, **claims)}"}


@pytest.fixture
def alice():
    return auth("alice", email="alice@example.com", name="Alice")


@pytest.fixture
def bob():
    return auth("bob", email="bob@example.com", name="Bob")


@pytest.fixture
def admin():
    return auth("admin-1", role="admin", email="admin@example.com", name="Admin")
