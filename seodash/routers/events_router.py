"""
Product analytics events.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query

from ..models import EventRequest
from ..utils import store
from ..utils.auth import require_session

router = APIRouter(prefix="/events", tags=["Events"])

KNOWN_EVENTS = {
    "page_view",
    "user_registration",
    "seo_analysis_started",
    "upgrade_to_pro",
    "user_login",
    "feature_used",
}


@router.post("/", status_code=201)
async def track_event(
    body: EventRequest,
    current_user: dict = Depends(require_session),
    user_agent: Optional[str] = Header(None),
):
    if body.event_name not in KNOWN_EVENTS:
        raise HTTPException(status_code=400, detail=f"Unknown event: {body.event_name}")
    row = await store.insert("event_logs", {
        "user_id": current_user["sub"],
        "event_name": body.event_name,
        "event_data": body.event_data,
        "page_url": body.page_url,
        "user_agent": user_agent,
    })
    return {"success": True, "id": row["id"]}


@router.get("/")
async def list_events(
    limit: int = Query(50, ge=1, le=200),
    current_user: dict = Depends(require_session),
):
    rows = await store.find("event_logs", {"user_id": current_user["sub"]}, sort="created_at", limit=limit)
    return {"events": rows}
