"""
seodash/routers/admin_router.py
Admin console: subscription packages and their features, users, settings
and platform overview. Every route requires the admin role.
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from ..models import (
    AdminSettingRequest,
    FeatureType,
    PackageFeatureLimit,
    PackageFeatureToggle,
    PackageRequest,
    UserUpdateRequest,
)
from ..services import plans
from ..utils import store
from ..utils.auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


async def _package_or_404(package_id: str) -> dict:
    package = await store.find_one("subscription_packages", {"id": package_id})
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    return package


# ── Packages & features ────────────────────────────────────────────────────────

@router.get("/packages")
async def list_packages(admin: dict = Depends(require_admin)):
    packages = await store.find("subscription_packages", sort="created_at", descending=False)
    features = await store.find("package_features")
    by_package = defaultdict(list)
    for f in features:
        by_package[f["package_id"]].append(f)
    return {"packages": [{**p, "features": by_package.get(p["id"], [])} for p in packages]}


@router.post("/packages", status_code=201)
async def create_package(body: PackageRequest, admin: dict = Depends(require_admin)):
    if not body.name.strip():
        raise HTTPException(status_code=400, detail="Package name is required")
    if body.is_default:
        # only one default package at a time
        await store.update("subscription_packages", {"is_default": True}, {"is_default": False})
    package = await store.insert("subscription_packages", {**body.model_dump(), "name": body.name.strip()})
    logger.info("Package %s created by %s", package["name"], admin["sub"])
    return {"success": True, "package": package}


@router.put("/packages/{package_id}")
async def update_package(package_id: str, body: PackageRequest, admin: dict = Depends(require_admin)):
    package = await _package_or_404(package_id)
    if body.is_default and not package.get("is_default"):
        await store.update("subscription_packages", {"is_default": True}, {"is_default": False})
    values = body.model_dump()
    await store.update("subscription_packages", {"id": package_id}, values)
    package.update(values)
    return {"success": True, "package": package}


@router.delete("/packages/{package_id}")
async def delete_package(package_id: str, admin: dict = Depends(require_admin)):
    await _package_or_404(package_id)
    active = await store.count("user_subscriptions", {"package_id": package_id, "status": "active"})
    if active:
        raise HTTPException(status_code=409, detail=f"Package has {active} active subscription(s)")
    await store.delete("package_features", {"package_id": package_id})
    await store.delete("subscription_packages", {"id": package_id})
    return {"success": True, "deleted": package_id}


@router.post("/packages/{package_id}/features")
async def toggle_package_feature(package_id: str, body: PackageFeatureToggle, admin: dict = Depends(require_admin)):
    await _package_or_404(package_id)
    query = {"package_id": package_id, "feature_type": body.feature_type.value}
    if body.enabled:
        row = await store.upsert("package_features", query, {"is_enabled": True})
        return {"success": True, "feature": row}
    await store.delete("package_features", query)
    return {"success": True, "feature": None}


@router.put("/packages/{package_id}/features/limit")
async def update_feature_limit(package_id: str, body: PackageFeatureLimit, admin: dict = Depends(require_admin)):
    matched = await store.update(
        "package_features",
        {"package_id": package_id, "feature_type": body.feature_type.value},
        {"custom_limit": body.custom_limit},
    )
    if matched == 0:
        raise HTTPException(status_code=404, detail="Feature is not enabled for this package")
    return {"success": True}


@router.get("/features")
async def list_features(admin: dict = Depends(require_admin)):
    rows = {f["feature_type"]: f for f in await store.find("subscription_features")}
    return {"features": [
        rows.get(ft.value, {"feature_type": ft.value, "name": ft.value.replace("_", " ").title()})
        for ft in FeatureType
    ]}


@router.get("/packages/stats")
async def package_stats(admin: dict = Depends(require_admin)):
    packages = {p["id"]: p for p in await store.find("subscription_packages")}
    subs = await store.find("user_subscriptions", {"status": "active"})
    total_users = await store.count("user_profiles")

    popular = {}
    for sub in subs:
        pkg = packages.get(sub.get("package_id"))
        if not pkg:
            continue
        entry = popular.setdefault(pkg["name"], {
            "name": pkg["name"], "subscribers": 0, "revenue": 0, "price": pkg.get("base_price_vnd", 0),
        })
        entry["subscribers"] += 1
        entry["revenue"] += pkg.get("base_price_vnd", 0)

    return {
        "total_packages": len(packages),
        "active_subscriptions": len(subs),
        "monthly_revenue": sum(p["revenue"] for p in popular.values()),
        "conversion_rate": round(len(subs) / total_users * 100, 1) if total_users else 0,
        "popular_packages": sorted(popular.values(), key=lambda p: p["subscribers"], reverse=True)[:3],
    }


# ── Users ──────────────────────────────────────────────────────────────────────

@router.get("/users")
async def list_users(admin: dict = Depends(require_admin)):
    profiles = await store.find("user_profiles", sort="created_at")
    admins = {r["user_id"] for r in await store.find("user_roles", {"role": "admin"})}
    start, _ = plans.month_bounds()
    users = []
    for p in profiles:
        limits = plans.limits_for(p)
        users.append({
            "id": p["user_id"],
            "email": p.get("email"),
            "tier": limits["tier"],
            "role": "admin" if p["user_id"] in admins else "member",
            "email_verified": bool(p.get("email_verified")),
            "scans_used": await plans.count_used(p["user_id"], "scans", start),
            "scans_limit": limits["scans"],
            "created_at": p.get("created_at"),
        })
    return {"total": len(users), "users": users}


@router.patch("/users/{user_id}")
async def update_user(user_id: str, body: UserUpdateRequest, admin: dict = Depends(require_admin)):
    profile = await store.find_one("user_profiles", {"user_id": user_id})
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")

    if body.tier is not None:
        limits = plans.PLAN_LIMITS[body.tier.value]
        await store.update("user_profiles", {"user_id": user_id}, {
            "tier": body.tier.value,
            "scans_limit": limits["scans"],
            "optimizations_limit": limits["optimizations"],
            "ai_rewrites_limit": limits["ai_rewrites"],
        })
    if body.role is not None:
        if user_id == admin["sub"] and body.role.value != "admin":
            raise HTTPException(status_code=400, detail="You cannot remove your own admin role")
        await store.upsert("user_roles", {"user_id": user_id}, {"role": body.role.value})
        await store.insert("user_activity_logs", {
            "user_id": user_id, "action": "role_changed",
            "details": {"role": body.role.value, "by": admin["sub"]},
        })
    logger.info("User %s updated by %s", user_id, admin["sub"])
    return {"success": True, "user_id": user_id}


# ── Settings & overview ────────────────────────────────────────────────────────

@router.get("/settings")
async def list_settings(admin: dict = Depends(require_admin)):
    return {"settings": await store.find("admin_settings", sort="setting_key", descending=False)}


@router.put("/settings/{setting_key}")
async def upsert_setting(setting_key: str, body: AdminSettingRequest, admin: dict = Depends(require_admin)):
    values = {"setting_value": body.setting_value}
    if body.description is not None:
        values["description"] = body.description
    row = await store.upsert("admin_settings", {"setting_key": setting_key}, values)
    return {"success": True, "setting": row}


@router.get("/overview")
async def overview(admin: dict = Depends(require_admin)):
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return {
        "total_users": await store.count("user_profiles"),
        "total_scans": await store.count("scans"),
        "api_calls_today": await store.count("api_logs", {"created_at": {"$gte": today}}),
        "failed_api_calls_today": await store.count("api_logs", {"created_at": {"$gte": today}, "success": False}),
        "active_subscriptions": await store.count("user_subscriptions", {"status": "active"}),
    }
