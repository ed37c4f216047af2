# src/saasbasic/auth/deps.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Sequence

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError, ExpiredSignatureError

from saasbasic.app_logger import get_logger
from saasbasic.core.config import settings

log = get_logger("auth.deps")

# ------------------------------------------------------------------------------
# Dev / local auth bypass
# ------------------------------------------------------------------------------
def _auth_disabled() -> bool:
    return bool(settings.DISABLE_AUTH)


def _dev_user() -> dict:
    return {
        "sub": "dev-user",
        "user_id": 1,
        "tenant_id": 1,
        "role": "admin",
        "email": "dev@example.com",
        "_roles": {"admin", "user"},
    }


if _auth_disabled():
    log.warning("AUTH is DISABLED for this process (DISABLE_AUTH=true)")

# ------------------------------------------------------------------------------
# Errors
# ------------------------------------------------------------------------------
class AuthError(HTTPException):
    def __init__(self, detail: str, code: int = status.HTTP_401_UNAUTHORIZED):
        super().__init__(
            status_code=code,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None,
        )

# ------------------------------------------------------------------------------
# Token issue / verification (HS256 shared secret)
# ------------------------------------------------------------------------------
def create_access_token(
    user_id: int,
    *,
    tenant_id: Optional[int] = None,
    role: str = "user",
    email: Optional[str] = None,
    expires_in: Optional[timedelta] = None,
    secret: Optional[str] = None,
) -> str:
    """Sign a bearer token carrying the claims the search API reads."""
    now = datetime.now(timezone.utc)
    exp = now + (expires_in if expires_in is not None else timedelta(hours=settings.JWT_EXPIRY_HOUR))
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "user_id": user_id,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if tenant_id is not None:
        claims["tenant_id"] = tenant_id
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _decode_jwt(token: str) -> dict:
    try:
        header = jwt.get_unverified_header(token)
    except JWTError:
        raise AuthError("Malformed bearer token")
    alg = header.get("alg", settings.JWT_ALGORITHM)
    if alg != settings.JWT_ALGORITHM:
        raise AuthError(f"Unsupported token algorithm: {alg}")

    opts = {
        "verify_aud": False,
        "verify_exp": True,
        "leeway": settings.JWT_LEEWAY_SECONDS,
    }
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[alg], options=opts)
    except ExpiredSignatureError:
        raise AuthError("Token expired")
    except JWTError as e:
        raise AuthError(f"Invalid token: {e}")

# ------------------------------------------------------------------------------
# Role helpers
# ------------------------------------------------------------------------------
def _extract_roles(claims: dict) -> set[str]:
    roles: set[str] = set()
    role = claims.get("role")
    if role:
        roles.add(str(role))
    roles.update(str(r) for r in claims.get("roles", []) or [])
    return roles

# ------------------------------------------------------------------------------
# OAuth dependencies
# ------------------------------------------------------------------------------
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_user(token: str | None = Depends(oauth2_scheme)) -> Optional[dict]:
    """Claims of the bearer token, or None for anonymous / invalid tokens."""
    if _auth_disabled():
        return _dev_user()

    if not token:
        return None
    try:
        claims = _decode_jwt(token)
    except AuthError as e:
        log.debug("bearer token rejected: %s", e.detail)
        return None
    claims["_roles"] = _extract_roles(claims)
    return claims


async def require_auth(user: Optional[dict] = Depends(get_current_user)) -> dict:
    if _auth_disabled():
        return _dev_user()
    if user is None:
        raise AuthError("Not authenticated")
    return user


def require_roles(
    *,
    any_of: Sequence[str] | set[str] | None = None,
    all_of: Sequence[str] | set[str] | None = None,
    detail: str = "Missing required role",
) -> Callable[..., Any]:

    any_of = set(any_of or [])
    all_of = set(all_of or [])

    async def _dep(user: Optional[dict] = Depends(get_current_user)) -> dict:
        if _auth_disabled():
            return _dev_user()

        if user is None:
            raise AuthError("Not authenticated")

        roles = set(user.get("_roles") or _extract_roles(user))
        if any_of and not any(r in roles for r in any_of):
            raise AuthError(detail, status.HTTP_403_FORBIDDEN)
        if any(r not in roles for r in all_of):
            raise AuthError(detail, status.HTTP_403_FORBIDDEN)
        return user

    return _dep


require_admin = require_roles(any_of=settings.admin_roles, detail="Admin access required")


def _int_claim(claims: Optional[dict], key: str) -> Optional[int]:
    if not claims:
        return None
    value = claims.get(key)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        log.debug("claim %s=%r is not an integer; ignored", key, value)
        return None


def caller_identity(claims: Optional[dict]) -> dict[str, Any]:
    """user_id / tenant_id / roles for SearchOptions, taken from verified claims only."""
    return {
        "user_id": _int_claim(claims, "user_id"),
        "tenant_id": _int_claim(claims, "tenant_id"),
        "roles": sorted(claims.get("_roles") or _extract_roles(claims)) if claims else [],
    }
