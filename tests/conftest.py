"""Pytest fixtures for storefront tests."""

import os
import tempfile
from decimal import Decimal

# konfiguracja przed importem storefront (settings czytaja env przy imporcie)
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.mkdtemp(prefix="storefront-"), "import.db")
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "1"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["ADMIN_TOKEN"] = "test-admin-token"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from storefront.data.database import Base, get_db, make_engine
from storefront.data.models import AddressModel, ProductModel, UserModel
from storefront.services.rate_limiter import InMemoryRateLimiter


@pytest.fixture
def engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    # expire_on_commit=False: odczyt atrybutow po commit nie otwiera nowej transakcji
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    counter = {"next": 1}

    def _make(name="Customer"):
        user = UserModel(id=counter["next"], name=name)
        counter["next"] += 1
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def make_product(db):
    def _make(name="Keyboard", price="10.00", stock=5, is_active=True):
        product = ProductModel(name=name, price=Decimal(price), stock=stock, is_active=is_active)
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def make_address(db):
    def _make(user_id):
        address = AddressModel(user_id=user_id, street="Main St 1", city="Krakow", postal_code="30-001", country="PL")
        db.add(address)
        db.commit()
        return address

    return _make


@pytest.fixture
def guest_session():
    return "3f1c2a9e-7b4d-4c8e-9a1f-2b3c4d5e6f70"


@pytest.fixture
def rate_limiter():
    return InMemoryRateLimiter()


@pytest.fixture
def client(session_factory, rate_limiter):
    """Test client bound to the per-test database."""
    from storefront.main import create_app

    app = create_app(rate_limiter=rate_limiter)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
