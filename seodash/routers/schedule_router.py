"""
seodash/routers/schedule_router.py
Recurring scans: create, list, pause/resume, delete.
"""
from fastapi import APIRouter, Depends, HTTPException

from ..models import ScheduledScanRequest
from ..services.scheduler import next_run
from ..utils import store
from ..utils.auth import require_session
from .scans_router import normalize_url

router = APIRouter(prefix="/schedules", tags=["Schedules"])


async def _owned(schedule_id: str, user_id: str) -> dict:
    row = await store.find_one("scheduled_scans", {"id": schedule_id})
    if not row or row.get("user_id") != user_id:
        raise HTTPException(status_code=404, detail="Scheduled scan not found")
    return row


@router.get("/")
async def list_schedules(current_user: dict = Depends(require_session)):
    rows = await store.find("scheduled_scans", {"user_id": current_user["sub"]}, sort="created_at")
    return {"schedules": rows}


@router.post("/", status_code=201)
async def create_schedule(body: ScheduledScanRequest, current_user: dict = Depends(require_session)):
    url = normalize_url(body.website_url)
    existing = await store.find_one("scheduled_scans", {"user_id": current_user["sub"], "website_url": url})
    if existing:
        raise HTTPException(status_code=409, detail="A schedule already exists for this URL")

    row = await store.insert("scheduled_scans", {
        "user_id": current_user["sub"],
        "website_url": url,
        "frequency_days": body.frequency_days,
        "email_alerts": body.email_alerts,
        "auto_optimize": body.auto_optimize,
        "is_active": True,
        "last_scan_at": None,
        "next_scan_at": next_run(body.frequency_days),
    })
    return {"success": True, "schedule": row}


@router.post("/{schedule_id}/toggle")
async def toggle_schedule(schedule_id: str, current_user: dict = Depends(require_session)):
    row = await _owned(schedule_id, current_user["sub"])
    active = not row.get("is_active", True)
    await store.update("scheduled_scans", {"id": schedule_id}, {"is_active": active})
    return {"success": True, "is_active": active}


@router.delete("/{schedule_id}")
async def delete_schedule(schedule_id: str, current_user: dict = Depends(require_session)):
    await _owned(schedule_id, current_user["sub"])
    await store.delete("scheduled_scans", {"id": schedule_id})
    return {"success": True, "deleted": schedule_id}
