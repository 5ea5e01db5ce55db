"""
Shared fixtures: a throwaway SQLite database, a live TestClient and
helpers to create users of any role with a ready-to-use token.
"""

import asyncio
import os
import tempfile
import uuid
from types import SimpleNamespace

_DB_DIR = tempfile.mkdtemp(prefix="restomatch-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-1234"
os.environ["ENV_MODE"] = "development"
os.environ["DEBUG"] = "false"

import pytest
from fastapi.testclient import TestClient

from restomatch.core.security import Claims, get_token_service, hash_password
from restomatch.database import Base, async_session_maker, engine
from restomatch.main import app
from restomatch.models import MenuCategory, MenuItem, STAFF_ROLES, User, UserRole


async def _drop_all():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


def run_db(fn):
    """Run ``fn(session)`` in a fresh session and return its result."""
    async def runner():
        async with async_session_maker() as session:
            return await fn(session)
    return asyncio.run(runner())


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    asyncio.run(_drop_all())


@pytest.fixture
def make_user(client):
    def _make(role=UserRole.CLIENT, name="Test User", email=None, password="secret123", salary=None):
        email = email or f"{role.value}-{uuid.uuid4().hex[:8]}@example.com"
        if salary is None and role in STAFF_ROLES:
            salary = 2000.0

        async def insert(session):
            user = User(
                name=name,
                email=email,
                password_hash=hash_password(password),
                role=role,
                salary=salary,
            )
            session.add(user)
            await session.commit()
            return user.id

        user_id = run_db(insert)
        token = get_token_service().issue(Claims(user_id=user_id, role=role))
        return SimpleNamespace(
            id=user_id,
            email=email,
            password=password,
            role=role,
            headers={"x-auth-token": token},
        )

    return _make


@pytest.fixture
def client_user(make_user):
    return make_user(UserRole.CLIENT, name="Alice Client")


@pytest.fixture
def staff_user(make_user):
    return make_user(UserRole.STAFF, name="Sam Staff")


@pytest.fixture
def admin_user(make_user):
    return make_user(UserRole.ADMIN, name="Ada Admin", salary=4000.0)


@pytest.fixture
def make_menu_item(client):
    def _make(name="Ratatouille", price=14.0, category=MenuCategory.PLATS):
        async def insert(session):
            item = MenuItem(
                name=name,
                description="Maison",
                price=price,
                category=category,
                image="https://example.com/dish.png",
            )
            session.add(item)
            await session.commit()
            return item.id
        return run_db(insert)

    return _make
