# tests/test_auth.py
from __future__ import annotations

import pytest

from saasbasic.auth.deps import AuthError, caller_identity, require_admin, require_roles
from saasbasic.core.config import settings

pytestmark = pytest.mark.anyio


def _claims(*roles: str) -> dict:
    return {"user_id": 5, "tenant_id": "3", "role": roles[0], "roles": list(roles[1:])}


async def test_any_of_accepts_one_matching_role():
    dep = require_roles(any_of=["editor", "admin"])
    user = _claims("editor")
    assert await dep(user=user) is user


async def test_any_of_rejects_without_match():
    dep = require_roles(any_of=["admin"])
    with pytest.raises(AuthError) as exc:
        await dep(user=_claims("user"))
    assert exc.value.status_code == 403
    assert exc.value.detail == "Missing required role"


async def test_all_of_needs_every_role():
    dep = require_roles(all_of=["user", "billing"])
    assert await dep(user=_claims("user", "billing"))
    with pytest.raises(AuthError) as exc:
        await dep(user=_claims("user"))
    assert exc.value.status_code == 403


async def test_anonymous_is_401():
    with pytest.raises(AuthError) as exc:
        await require_roles(any_of=["user"])(user=None)
    assert exc.value.status_code == 401
    assert exc.value.headers == {"WWW-Authenticate": "Bearer"}


async def test_require_admin_uses_configured_roles():
    assert await require_admin(user=_claims("super-admin"))
    with pytest.raises(AuthError) as exc:
        await require_admin(user=_claims("user"))
    assert exc.value.detail == "Admin access required"


async def test_disable_auth_returns_dev_user(monkeypatch):
    monkeypatch.setattr(settings, "DISABLE_AUTH", True)
    user = await require_roles(all_of=["nobody-has-this"])(user=None)
    assert user["user_id"] == 1
    assert "admin" in user["_roles"]


def test_caller_identity_from_claims():
    assert caller_identity(_claims("user", "billing")) == {
        "user_id": 5,
        "tenant_id": 3,
        "roles": ["billing", "user"],
    }
    assert caller_identity(None) == {"user_id": None, "tenant_id": None, "roles": []}
