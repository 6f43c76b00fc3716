"""
seodash/routers/organizations_router.py
Organizations: create, list, members, invitations and member roles.

Tables:
  organizations            { id, name, description, created_by }
  organization_members     { id, organization_id, user_id, role, status }
  organization_invitations { id, organization_id, email, role, invited_by, status }
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from ..models import InviteRequest, MemberRoleRequest, OrganizationRequest, OrganizationRole
from ..utils import store
from ..utils.auth import require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/organizations", tags=["Organizations"])


async def _org_or_404(org_id: str) -> dict:
    org = await store.find_one("organizations", {"id": org_id})
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


async def _membership(org_id: str, user_id: str):
    return await store.find_one(
        "organization_members", {"organization_id": org_id, "user_id": user_id, "status": "active"}
    )


async def _require_manager(org: dict, user_id: str):
    """Creator or active admin member."""
    if org.get("created_by") == user_id:
        return
    member = await _membership(org["id"], user_id)
    if not member or member.get("role") != OrganizationRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Only organization admins can manage members")


@router.post("/", status_code=201)
async def create_organization(body: OrganizationRequest, current_user: dict = Depends(require_session)):
    name = body.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Organization name is required")
    org = await store.insert("organizations", {
        "name": name,
        "description": body.description,
        "created_by": current_user["sub"],
    })
    await store.insert("organization_members", {
        "organization_id": org["id"],
        "user_id": current_user["sub"],
        "role": OrganizationRole.ADMIN.value,
        "status": "active",
    })
    logger.info("Organization %s created by %s", org["id"], current_user["sub"])
    return {"success": True, "organization": org}


@router.get("/")
async def list_organizations(current_user: dict = Depends(require_session)):
    user_id = current_user["sub"]
    memberships = await store.find("organization_members", {"user_id": user_id, "status": "active"})
    ids = {m["organization_id"] for m in memberships}
    owned = await store.find("organizations", {"created_by": user_id})
    ids.update(o["id"] for o in owned)
    if not ids:
        return {"organizations": []}
    orgs = await store.find("organizations", {"id": {"$in": sorted(ids)}}, sort="created_at")
    return {"organizations": orgs}


@router.get("/{org_id}/members")
async def list_members(org_id: str, current_user: dict = Depends(require_session)):
    org = await _org_or_404(org_id)
    if org.get("created_by") != current_user["sub"] and not await _membership(org_id, current_user["sub"]):
        raise HTTPException(status_code=403, detail="Not a member of this organization")
    members = await store.find(
        "organization_members", {"organization_id": org_id, "status": "active"},
        sort="created_at", descending=False,
    )
    return {"organization": org, "members": members}


@router.post("/{org_id}/invitations", status_code=201)
async def invite_member(org_id: str, body: InviteRequest, current_user: dict = Depends(require_session)):
    org = await _org_or_404(org_id)
    await _require_manager(org, current_user["sub"])

    email = body.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="Invalid email address")
    pending = await store.find_one(
        "organization_invitations", {"organization_id": org_id, "email": email, "status": "pending"}
    )
    if pending:
        raise HTTPException(status_code=409, detail="An invitation is already pending for this email")

    invitation = await store.insert("organization_invitations", {
        "organization_id": org_id,
        "email": email,
        "role": body.role.value,
        "invited_by": current_user["sub"],
        "status": "pending",
    })
    return {"success": True, "invitation": invitation}


@router.patch("/{org_id}/members/{member_id}")
async def update_member_role(
    org_id: str, member_id: str, body: MemberRoleRequest, current_user: dict = Depends(require_session),
):
    org = await _org_or_404(org_id)
    await _require_manager(org, current_user["sub"])
    matched = await store.update(
        "organization_members",
        {"id": member_id, "organization_id": org_id, "status": "active"},
        {"role": body.role.value},
    )
    if matched == 0:
        raise HTTPException(status_code=404, detail="Member not found")
    return {"success": True, "member_id": member_id, "role": body.role.value}


@router.delete("/{org_id}/members/{member_id}")
async def remove_member(org_id: str, member_id: str, current_user: dict = Depends(require_session)):
    org = await _org_or_404(org_id)
    await _require_manager(org, current_user["sub"])
    member = await store.find_one("organization_members", {"id": member_id, "organization_id": org_id})
    if not member or member.get("status") != "active":
        raise HTTPException(status_code=404, detail="Member not found")
    if member["user_id"] == org.get("created_by"):
        raise HTTPException(status_code=400, detail="The organization creator cannot be removed")
    await store.update("organization_members", {"id": member_id}, {"status": "inactive"})
    return {"success": True, "removed": member_id}
