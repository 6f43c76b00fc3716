"""
seodash/routers/api_tokens_router.py
API tokens for the public scan API: generate, list, revoke, delete.

Table: api_tokens
  { id, user_id, token_name, token_hash, token_prefix, permissions,
    rate_limit_per_hour, is_active, expires_at, last_used_at }
"""
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException

from ..models import TokenCreateRequest
from ..utils import store
from ..utils.auth import API_TOKEN_PREFIX, hash_token, require_session

router = APIRouter(prefix="/tokens", tags=["API Tokens"])

MAX_ACTIVE_TOKENS = 10
DEFAULT_PERMISSIONS = ["scan", "results", "history"]
DEFAULT_RATE_LIMIT = 100


def _preview(raw: str) -> str:
    return raw[:8] + "..."


def _public(token: dict) -> dict:
    return {k: v for k, v in token.items() if k != "token_hash"}


@router.get("/")
async def list_tokens(current_user: dict = Depends(require_session)):
    tokens = await store.find("api_tokens", {"user_id": current_user["sub"]}, sort="created_at")
    return {"tokens": [_public(t) for t in tokens]}


@router.post("/", status_code=201)
async def create_token(body: TokenCreateRequest, current_user: dict = Depends(require_session)):
    """Generate a new API token. The full token is returned ONCE, so store it safely."""
    name = body.token_name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Please enter a token name")

    active = await store.count("api_tokens", {"user_id": current_user["sub"], "is_active": True})
    if active >= MAX_ACTIVE_TOKENS:
        raise HTTPException(status_code=400, detail=f"Maximum of {MAX_ACTIVE_TOKENS} API tokens reached. Revoke one first.")

    permissions = body.permissions or list(DEFAULT_PERMISSIONS)
    unknown = set(permissions) - set(DEFAULT_PERMISSIONS)
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown permission(s): {', '.join(sorted(unknown))}")

    raw = API_TOKEN_PREFIX + secrets.token_hex(32)
    expires_at = None
    if body.expires_in_days:
        expires_at = (datetime.now(timezone.utc) + timedelta(days=body.expires_in_days)).isoformat()

    record = await store.insert("api_tokens", {
        "user_id": current_user["sub"],
        "user_email": current_user.get("email"),
        "token_name": name,
        "token_hash": hash_token(raw),
        "token_prefix": _preview(raw),
        "permissions": permissions,
        "rate_limit_per_hour": DEFAULT_RATE_LIMIT,
        "is_active": True,
        "expires_at": expires_at,
        "last_used_at": None,
    })
    return {
        "success": True,
        "token": raw,  # shown ONCE only
        "record": _public(record),
        "message": "Store this token safely. It will not be shown again.",
    }


@router.post("/{token_id}/revoke")
async def revoke_token(token_id: str, current_user: dict = Depends(require_session)):
    matched = await store.update(
        "api_tokens", {"id": token_id, "user_id": current_user["sub"]}, {"is_active": False}
    )
    if matched == 0:
        raise HTTPException(status_code=404, detail="Token not found")
    return {"success": True, "revoked": token_id}


@router.delete("/{token_id}")
async def delete_token(token_id: str, current_user: dict = Depends(require_session)):
    deleted = await store.delete("api_tokens", {"id": token_id, "user_id": current_user["sub"]})
    if deleted == 0:
        raise HTTPException(status_code=404, detail="Token not found")
    return {"success": True, "deleted": token_id}
