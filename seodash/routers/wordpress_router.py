"""
seodash/routers/wordpress_router.py
WordPress publishing integrations. Application passwords are encrypted at
rest and never returned to the client.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..models import WordPressSiteRequest
from ..utils import store
from ..utils.auth import require_session
from ..utils.crypto import CredentialError, encrypt_credential

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wordpress/sites", tags=["WordPress"])


def normalize_site_url(raw: str) -> str:
    url = raw.strip()
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url.rstrip("/")


def _public(site: dict) -> dict:
    out = {k: v for k, v in site.items() if k != "application_password"}
    out["has_password"] = bool(site.get("application_password"))
    return out


def _encrypt(password: str) -> str:
    try:
        return encrypt_credential(password)
    except CredentialError as e:
        logger.error("Cannot store WordPress password: %s", e)
        raise HTTPException(status_code=500, detail="Credential storage is not configured")


async def _owned_site(site_id: str, user_id: str) -> dict:
    site = await store.find_one("wordpress_sites", {"id": site_id})
    if not site or site.get("user_id") != user_id:
        raise HTTPException(status_code=404, detail="WordPress site not found")
    return site


@router.get("/")
async def list_sites(current_user: dict = Depends(require_session)):
    sites = await store.find("wordpress_sites", {"user_id": current_user["sub"]}, sort="created_at")
    return {"sites": [_public(s) for s in sites]}


@router.post("/", status_code=201)
async def create_site(body: WordPressSiteRequest, current_user: dict = Depends(require_session)):
    if not body.site_name.strip() or not body.site_url.strip() or not body.application_password:
        raise HTTPException(status_code=400, detail="Vui lòng điền đầy đủ thông tin")

    site = await store.insert("wordpress_sites", {
        "user_id": current_user["sub"],
        "site_name": body.site_name.strip(),
        "site_url": normalize_site_url(body.site_url),
        "application_password": _encrypt(body.application_password),
        "default_category": body.default_category,
        "default_status": body.default_status,
    })
    logger.info("WordPress site %s added for %s", site["site_url"], current_user["sub"])
    return {"success": True, "site": _public(site)}


@router.put("/{site_id}")
async def update_site(site_id: str, body: WordPressSiteRequest, current_user: dict = Depends(require_session)):
    """Update a site. An empty application_password keeps the stored one."""
    site = await _owned_site(site_id, current_user["sub"])
    if not body.site_name.strip() or not body.site_url.strip():
        raise HTTPException(status_code=400, detail="Vui lòng điền đầy đủ thông tin")

    values = {
        "site_name": body.site_name.strip(),
        "site_url": normalize_site_url(body.site_url),
        "default_category": body.default_category,
        "default_status": body.default_status,
    }
    if body.application_password:
        values["application_password"] = _encrypt(body.application_password)
    await store.update("wordpress_sites", {"id": site_id}, values)
    site.update(values)
    return {"success": True, "site": _public(site)}


@router.delete("/{site_id}")
async def delete_site(site_id: str, current_user: dict = Depends(require_session)):
    await _owned_site(site_id, current_user["sub"])
    await store.delete("wordpress_sites", {"id": site_id})
    return {"success": True, "deleted": site_id}
