"""
Shared fixtures

No database is needed: repositories and services are patched per test and the
auth dependencies are overridden on the app.
"""
import os
import uuid
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

# Must be set before the application modules read their settings
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("EMAIL_ENABLED", "false")
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from api.deps import get_current_user
from data.database import db_manager
from data.models.category import Category
from data.models.product import Product
from data.models.user import User
from utils.cache import cache

def new_id() -> str:
    return str(uuid.uuid4())

def make_user(role: str = "customer", **kwargs) -> User:
    defaults = dict(
        id=new_id(),
        username=f"{role}_user",
        email=f"{role}@example.com",
        first_name="Jane",
        last_name="Doe",
        role=role,
    )
    defaults.update(kwargs)
    return User(**defaults)

def make_product(**kwargs) -> Product:
    defaults = dict(
        id=new_id(),
        name="Silk Scarf",
        slug="silk-scarf",
        description="Hand rolled silk twill scarf",
        category_id=new_id(),
        price=350.0,
        status="active",
        is_published=True,
        inventory_quantity=5,
        images=[{"url": "https://cdn.example.com/scarf.jpg", "is_default": True}],
    )
    defaults.update(kwargs)
    return Product(**defaults)

def make_category(name: str, parent: Category = None, **kwargs) -> Category:
    from data.models.category import build_ancestors
    from utils.validators import generate_slug

    return Category(
        id=kwargs.pop("id", new_id()),
        name=name,
        slug=generate_slug(name),
        parent_id=parent.id if parent else None,
        ancestors=build_ancestors(parent),
        **kwargs
    )

@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()

@pytest.fixture
def fake_transaction(monkeypatch):
    """Replace db_manager.transaction with one yielding a dummy connection"""
    conn = MagicMock(name="conn")

    @asynccontextmanager
    async def transaction():
        yield conn

    monkeypatch.setattr(db_manager, "transaction", transaction)
    return conn

@pytest.fixture
def fake_connection(monkeypatch):
    """Replace db_manager.get_connection with one yielding a scripted connection"""
    conn = MagicMock(name="conn")
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetchval = AsyncMock(return_value=0)
    conn.execute = AsyncMock(return_value="")

    @asynccontextmanager
    async def get_connection():
        yield conn

    monkeypatch.setattr(db_manager, "get_connection", get_connection)
    return conn

@pytest.fixture
def customer() -> User:
    return make_user("customer")

@pytest.fixture
def admin() -> User:
    return make_user("admin", username="admin", email="admin@example.com")

@pytest.fixture
def app():
    from main import create_app

    application = create_app()
    yield application
    application.dependency_overrides.clear()

@pytest.fixture
def login_as(app):
    """login_as(user) makes every authenticated route see ``user``"""
    def _login(user: User):
        app.dependency_overrides[get_current_user] = lambda: user
        return user
    return _login

@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac
