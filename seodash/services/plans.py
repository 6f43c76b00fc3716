"""
seodash/services/plans.py
Plan limits, month-to-date usage and quota checks.
Usage is counted from rows each action appends (usage_events for scans,
optimization_history, ai_content_logs). None of these rows are deleted by
user actions, so removing a scan never gives quota back.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from seodash.utils import store

logger = logging.getLogger(__name__)

PLAN_LIMITS: Dict[str, Dict[str, Any]] = {
    "free":   {"scans": 10,  "optimizations": 3,   "ai_rewrites": 2,   "pdf_enabled": False, "ai_enabled": False},
    "pro":    {"scans": 100, "optimizations": 50,  "ai_rewrites": 25,  "pdf_enabled": True,  "ai_enabled": True},
    "agency": {"scans": 500, "optimizations": 200, "ai_rewrites": 100, "pdf_enabled": True,  "ai_enabled": True},
}

# action -> (table holding one row per use, extra filter, profile limit column)
USAGE_SOURCES = {
    "scans":         ("usage_events", {"action": "scans"}, "scans_limit"),
    "optimizations": ("optimization_history", {}, "optimizations_limit"),
    "ai_rewrites":   ("ai_content_logs", {}, "ai_rewrites_limit"),
}


def month_bounds(now: Optional[datetime] = None) -> tuple:
    """(start of this month, start of next month) in UTC."""
    now = now or datetime.now(timezone.utc)
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        nxt = start.replace(year=start.year + 1, month=1)
    else:
        nxt = start.replace(month=start.month + 1)
    return start, nxt


async def get_profile(user_id: str, email: Optional[str] = None) -> dict:
    """Fetch a user's profile, creating a free one on first use."""
    profile = await store.find_one("user_profiles", {"user_id": user_id})
    if profile:
        return profile
    limits = PLAN_LIMITS["free"]
    logger.info("Creating free profile for %s", user_id)
    return await store.insert("user_profiles", {
        "user_id": user_id,
        "email": email,
        "tier": "free",
        "scans_limit": limits["scans"],
        "optimizations_limit": limits["optimizations"],
        "ai_rewrites_limit": limits["ai_rewrites"],
        "email_verified": False,
    })


def limits_for(profile: dict) -> Dict[str, Any]:
    tier = profile.get("tier") or "free"
    limits = dict(PLAN_LIMITS.get(tier, PLAN_LIMITS["free"]))
    for action, (_, _, column) in USAGE_SOURCES.items():
        if profile.get(column):
            limits[action] = profile[column]
    limits["tier"] = tier if tier in PLAN_LIMITS else "free"
    return limits


async def count_used(user_id: str, action: str, since: datetime) -> int:
    table, extra, _ = USAGE_SOURCES[action]
    return await store.count(table, {"user_id": user_id, **extra, "created_at": {"$gte": since.isoformat()}})


async def get_usage(user_id: str) -> Dict[str, Any]:
    profile = await get_profile(user_id)
    limits = limits_for(profile)
    start, reset = month_bounds()

    usage: Dict[str, Any] = {"tier": limits["tier"], "reset_date": reset.isoformat()}
    for action in USAGE_SOURCES:
        usage[f"{action}_used"] = await count_used(user_id, action, start)
        usage[f"{action}_limit"] = limits[action]
    usage["pdf_enabled"] = limits["pdf_enabled"]
    usage["ai_enabled"] = limits["ai_enabled"]
    return usage


async def can_perform(user_id: str, action: str) -> bool:
    if action not in USAGE_SOURCES:
        return False
    usage = await get_usage(user_id)
    return usage[f"{action}_used"] < usage[f"{action}_limit"]


async def check_plan_limit(user_id: str, feature: Optional[str] = None) -> Dict[str, Any]:
    """
    Check a scan-consuming action against the user's plan.
    `feature` is "pdf" or "ai" when the action also needs a paid feature.
    """
    usage = await get_usage(user_id)
    plan = {
        "plan_id": usage["tier"],
        "monthly_limit": usage["scans_limit"],
        "used_count": usage["scans_used"],
        "remaining_count": max(0, usage["scans_limit"] - usage["scans_used"]),
        "pdf_enabled": usage["pdf_enabled"],
        "ai_enabled": usage["ai_enabled"],
    }

    if feature == "pdf" and not plan["pdf_enabled"]:
        return {"allowed": False, "plan": plan,
                "error": "Tính năng PDF chỉ khả dụng cho gói Pro. Vui lòng nâng cấp gói."}
    if feature == "ai" and not plan["ai_enabled"]:
        return {"allowed": False, "plan": plan,
                "error": "Tính năng AI chỉ khả dụng cho gói Pro. Vui lòng nâng cấp gói."}
    if feature is None and plan["remaining_count"] <= 0:
        return {"allowed": False, "plan": plan,
                "error": (f"Bạn đã sử dụng hết lượt phân tích trong tháng "
                          f"({plan['used_count']}/{plan['monthly_limit']}). "
                          f"Vui lòng nâng cấp gói hoặc chờ tháng sau.")}
    return {"allowed": True, "plan": plan, "error": None}


async def record_ai_usage(user_id: str, content_type: str) -> None:
    await store.insert("ai_content_logs", {"user_id": user_id, "content_type": content_type})


async def record_usage(user_id: str, action: str) -> None:
    """Append one unit of `action` usage for the current month."""
    await store.insert("usage_events", {"user_id": user_id, "action": action})
