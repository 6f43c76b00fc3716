"""
Optimization history: before/after records of applied SEO fixes, with rollback.
"""
from fastapi import APIRouter, Depends, HTTPException, Query

from ..models import OptimizationRecordRequest
from ..services import plans
from ..utils import store
from ..utils.auth import require_session

router = APIRouter(prefix="/optimizations", tags=["Optimizations"])


@router.post("/", status_code=201)
async def record_optimization(body: OptimizationRecordRequest, current_user: dict = Depends(require_session)):
    if not await plans.can_perform(current_user["sub"], "optimizations"):
        raise HTTPException(status_code=402, detail="Monthly optimization limit reached. Please upgrade your plan.")
    row = await store.insert("optimization_history", {"user_id": current_user["sub"], **body.model_dump()})
    return {"success": True, "entry": row}


@router.get("/")
async def list_optimizations(
    domain: str = Query(None, description="Substring of the website URL"),
    current_user: dict = Depends(require_session),
):
    rows = await store.find("optimization_history", {"user_id": current_user["sub"]}, sort="created_at")
    if domain:
        needle = domain.lower()
        rows = [r for r in rows if needle in (r.get("website_url") or "").lower()]
    for r in rows:
        r["score_gain"] = (r.get("seo_score_after") or 0) - (r.get("seo_score_before") or 0)
    return {"total": len(rows), "history": rows}


@router.post("/{entry_id}/rollback")
async def rollback(entry_id: str, current_user: dict = Depends(require_session)):
    """Mark an optimization as rolled back; the site restore itself runs remotely."""
    row = await store.find_one("optimization_history", {"id": entry_id})
    if not row or row.get("user_id") != current_user["sub"]:
        raise HTTPException(status_code=404, detail="Optimization not found")
    if row.get("status") == "rolled_back":
        raise HTTPException(status_code=409, detail="Already rolled back")
    await store.update("optimization_history", {"id": entry_id}, {"status": "rolled_back"})
    return {"success": True, "id": entry_id, "status": "rolled_back"}
