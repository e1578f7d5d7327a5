"""Pytest fixtures for shopcart tests."""

import os
import threading
from decimal import Decimal

os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import shopcart.data.models  # noqa: F401
from shopcart.api.deps import get_lock_service
from shopcart.data.database import Base, get_db
from shopcart.domain.schemas import DiscountIn, ProductCreate, SizeIn, UserCreate
from shopcart.main import create_app
from shopcart.services.cart_service import CartService
from shopcart.services.inventory_service import InventoryService
from shopcart.services.lock_service import LockService
from shopcart.services.product_service import ProductService
from shopcart.services.user_service import UserService


class InProcessRedis:
    """Thread-safe stand-in for the two redis calls LockService makes."""

    def __init__(self):
        self._data = {}
        self._lock = threading.Lock()

    def set(self, name, value, nx=False, ex=None):
        with self._lock:
            if nx and name in self._data:
                return None
            self._data[name] = value
            return True

    def eval(self, script, numkeys, key, token):
        with self._lock:
            if self._data.get(key) == token:
                del self._data[key]
                return 1
            return 0


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def redis_client():
    return InProcessRedis()


@pytest.fixture
def lock_service(redis_client):
    # short wait keeps the busy-lock tests fast
    return LockService(client=redis_client, wait_timeout=0.2)


@pytest.fixture
def inventory(db):
    return InventoryService(db)


@pytest.fixture
def cart_service(db, lock_service):
    return CartService(db=db, lock_service=lock_service)


@pytest.fixture
def user(db):
    """Create a test user."""
    return UserService(db).create_user(UserCreate(id=1, name="Ann"))


@pytest.fixture
def make_product(db):
    """Factory for catalog products."""

    def _make(name="Keyboard", base_price="100.00", total_stock=10, sizes=None, discount=None, is_active=True):
        payload = ProductCreate(
            name=name,
            base_price=Decimal(base_price),
            total_stock=0 if sizes else total_stock,
            sizes=[SizeIn(size=s, stock=n) for s, n in (sizes or {}).items()],
            discount=DiscountIn(**discount) if discount else None,
            is_active=is_active,
        )
        return ProductService(db).create_product(payload)

    return _make


@pytest.fixture
def client(session_factory, lock_service):
    app = create_app(with_lifespan=False)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    return TestClient(app)
