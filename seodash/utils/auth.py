"""
seodash/utils/auth.py: bearer-token / API-token verification + FastAPI dependencies.
Tokens are issued by the hosted auth service; this module only verifies them.
"""
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from seodash.config import get_settings
from seodash.utils import store

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)
API_TOKEN_PREFIX = "sat_"
ACCESS_TOKEN_EXPIRE_MINUTES = 60


def hash_token(raw: str) -> str:
    return hashlib.sha256(raw.encode()).hexdigest()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Mint a token the way the hosted auth service does (used by tests and tooling)."""
    settings = get_settings()
    payload = data.copy()
    payload["exp"] = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jwt.encode(payload, settings.app_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(
            token,
            settings.app_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def _user_from_api_token(raw: str) -> dict:
    if raw.startswith(API_TOKEN_PREFIX):
        record = await store.find_one("api_tokens", {"token_hash": hash_token(raw), "is_active": True})
        now = datetime.now(timezone.utc).isoformat()
        if record and not (record.get("expires_at") and record["expires_at"] <= now):
            await store.update("api_tokens", {"id": record["id"]}, {"last_used_at": now})
            return {
                "sub": record["user_id"],
                "email": record.get("user_email"),
                "auth": "api_token",
                "permissions": record.get("permissions") or [],
            }
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid, expired or revoked API token",
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    api_key: Optional[str] = Depends(api_key_header),
) -> dict:
    if api_key:
        return await _user_from_api_token(api_key)

    if credentials:
        payload = verify_token(credentials.credentials)
        if not payload.get("sub"):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has no subject")
        payload["auth"] = "jwt"
        return payload

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated. Provide a valid Bearer token or X-API-Key.",
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_permission(permission: str):
    """API tokens carry explicit permissions; session tokens have them all."""
    async def _dep(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user.get("auth") == "api_token" and permission not in current_user.get("permissions", []):
            raise HTTPException(status_code=403, detail=f"API token lacks '{permission}' permission")
        return current_user
    return _dep


async def is_admin(user_id: str) -> bool:
    return await store.find_one("user_roles", {"user_id": user_id, "role": "admin"}) is not None


async def require_session(current_user: dict = Depends(get_current_user)) -> dict:
    """Signed-in dashboard users only. API tokens reach the scan API and nothing else."""
    if current_user.get("auth") != "jwt":
        raise HTTPException(status_code=403, detail="API tokens cannot access this endpoint")
    return current_user


async def require_admin(current_user: dict = Depends(require_session)) -> dict:
    if not await is_admin(current_user["sub"]):
        logger.warning("Admin access denied for %s", current_user.get("sub"))
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
