# tests/conftest.py
"""
In-process fixtures for the search API.

- Settings are bootstrapped from env BEFORE anything under saasbasic is imported.
- Every test gets its own SQLite file (sqlite+aiosqlite) under tmp_path.
- `client` drives the real app (lifespan included) through httpx's ASGITransport.
"""
from __future__ import annotations

import os
import sys
import logging
import tempfile
from datetime import timedelta
from decimal import Decimal
from typing import Callable, Optional

# ==============================================================
# Env bootstrap (module level: settings are read on first import)
# ==============================================================
_BOOT_DIR = tempfile.mkdtemp(prefix="saasbasic-tests-")
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_BOOT_DIR}/bootstrap.db"
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.pop("DISABLE_AUTH", None)
os.environ.pop("SAASBASIC_DISABLE_AUTH", None)
os.environ.pop("CORS_ORIGINS", None)

import pytest
from httpx import AsyncClient, ASGITransport

from saasbasic.auth.deps import create_access_token
from saasbasic.core.config import settings
from saasbasic.db.base import Base
from saasbasic.db.models import Contact, Customer, Email, Organization, Plan, User
from saasbasic.db.session import build_engine, build_sessionmaker


# =========================
# Logging -> stdout
# =========================
@pytest.fixture(scope="session", autouse=True)
def _tests_log_to_stdout():
    root = logging.getLogger()
    if not any(
        isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) is sys.stdout
        for h in root.handlers
    ):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root.addHandler(handler)
    root.setLevel(os.getenv("TEST_LOG_LEVEL", "INFO").upper())


# Make anyio run on asyncio (so our async fixtures work everywhere)
@pytest.fixture(scope="session", autouse=True)
def anyio_backend():
    return "asyncio"


# ==============================================================
# Database
# ==============================================================
@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'search.db'}"


@pytest.fixture
async def engine(db_url):
    eng = build_engine(db_url)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def sessionmaker(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def seeded(sessionmaker):
    """
    Two tenants:
      1 = Acme Org   (alice, Acme Corporation, carol's contact request, a welcome email)
      2 = Globex     (bob, Acme Rival)
    Plans are tenant-less; "Legacy Starter" is inactive.
    """
    async with sessionmaker() as session:
        session.add_all([
            Organization(id=1, name="Acme Org", slug="acme-org"),
            Organization(id=2, name="Globex", slug="globex"),
        ])
        await session.flush()
        session.add_all([
            User(id=1, username="alice", email="alice@acme.test", first_name="Alice",
                 last_name="Smith", role="user", organization_id=1),
            User(id=2, username="bob", email="bob@globex.test", first_name="Bob",
                 last_name="Jones", role="user", organization_id=2),
            User(id=3, username="alicia", email="alicia@acme.test", first_name="Alicia",
                 last_name="Gone", role="user", organization_id=1, active=False),
            Customer(id=1, name="Acme Corporation", email="billing@acme.test",
                     phone="+49 30 1234", company="Acme", organization_id=1),
            Customer(id=2, name="Acme Rival", email="info@globex.test",
                     company="Globex", organization_id=2),
            Plan(id=1, name="Starter", slug="starter", description="Basic plan for small teams",
                 price=Decimal("9.99"), currency="EUR", features="search,export"),
            Plan(id=2, name="Enterprise", slug="enterprise", description="Unlimited seats for large teams",
                 price=Decimal("99.00"), currency="EUR", features="sso,audit"),
            Plan(id=3, name="Legacy Starter", slug="legacy-starter", description="Retired",
                 price=Decimal("5.00"), currency="EUR", active=False),
            Contact(id=1, name="Carol Contact", email="carol@acme.test", subject="Pricing question",
                    message="How much is the enterprise plan?", organization_id=1),
            Email(id=1, to_email="alice@acme.test", from_email="noreply@acme.test",
                  subject="Welcome to Acme", body="Hello Alice", status="sent", organization_id=1),
        ])
        await session.commit()
    return sessionmaker


# ==============================================================
# App / client
# ==============================================================
@pytest.fixture
def app(db_url, monkeypatch):
    from saasbasic.main import create_app

    monkeypatch.setattr(settings, "DATABASE_URL", db_url)
    return create_app()


@pytest.fixture
async def client(app, seeded):
    # drive startup/shutdown explicitly; ASGITransport does not run lifespan
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            yield ac


# ==============================================================
# Tokens
# ==============================================================
@pytest.fixture
def make_token() -> Callable[..., str]:
    def _make(
        user_id: int = 1,
        tenant_id: Optional[int] = 1,
        role: str = "user",
        expires_in: Optional[timedelta] = None,
    ) -> str:
        return create_access_token(user_id, tenant_id=tenant_id, role=role, expires_in=expires_in)
    return _make


@pytest.fixture
def auth_headers(make_token) -> dict:
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def admin_headers(make_token) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id=99, tenant_id=1, role='admin')}"}
