"""
seodash/routers/alerts_router.py
SEO alerts raised by the monitoring backend for a user's domains: list with
filters, mark read, delete. Monitored domains are the active scheduled scans.

Table: alerts
  { id, user_id, domain, type, message, severity (info|warning|error),
    is_read, link, data }
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from ..models import AlertFilter
from ..utils import store
from ..utils.auth import require_session

router = APIRouter(prefix="/alerts", tags=["Alerts"])

MAX_ALERTS = 50


async def _owned_alert(alert_id: str, user_id: str) -> dict:
    alert = await store.find_one("alerts", {"id": alert_id})
    if not alert or alert.get("user_id") != user_id:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.get("/")
async def list_alerts(
    view: AlertFilter = Query(AlertFilter.ALL, alias="filter"),
    current_user: dict = Depends(require_session),
):
    user_id = current_user["sub"]
    alerts = await store.find("alerts", {"user_id": user_id}, sort="created_at", limit=MAX_ALERTS)
    unread = sum(1 for a in alerts if not a.get("is_read"))

    if view == AlertFilter.UNREAD:
        alerts = [a for a in alerts if not a.get("is_read")]
    elif view in (AlertFilter.ERROR, AlertFilter.WARNING):
        alerts = [a for a in alerts if a.get("severity") == view.value]

    schedules = await store.find("scheduled_scans", {"user_id": user_id, "is_active": True})
    return {
        "alerts": alerts,
        "unread_count": unread,
        "monitored_domains": sorted({s["website_url"] for s in schedules}),
    }


@router.post("/{alert_id}/read")
async def mark_read(alert_id: str, current_user: dict = Depends(require_session)):
    await _owned_alert(alert_id, current_user["sub"])
    await store.update("alerts", {"id": alert_id}, {"is_read": True})
    return {"success": True, "id": alert_id}


@router.delete("/{alert_id}")
async def delete_alert(alert_id: str, current_user: dict = Depends(require_session)):
    await _owned_alert(alert_id, current_user["sub"])
    await store.delete("alerts", {"id": alert_id})
    return {"success": True, "deleted": alert_id}
