"""
seodash/routers/scans_router.py
Scan history: record analysis results, list, detail, compare and validate.
The analysis itself runs on the remote backend; this router stores and
presents what it produced.
"""
import logging
from urllib.parse import urlparse

from fastapi import APIRouter, Depends, HTTPException, Query

from ..models import ScanCreateRequest
from ..services import plans
from ..services.seo_validator import (
    convert_to_standardized,
    log_validation,
    validate_alt_text,
    validate_headings,
    validate_meta_description,
    validate_meta_title,
    validate_page_speed,
)
from ..services.site_metrics import compare_scans, issues_by_priority
from ..utils import store
from ..utils.auth import require_permission, require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scans", tags=["Scans"])


def normalize_url(raw: str) -> str:
    url = (raw or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail="URL is required")
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    parsed = urlparse(url)
    if not parsed.hostname or "." not in parsed.hostname:
        raise HTTPException(status_code=400, detail=f"Invalid URL: {raw}")
    return url.rstrip("/")


def validate_seo_payload(seo: dict) -> dict:
    """Run every validator the payload has data for; keyed by check name."""
    keyword = seo.get("keyword")
    checks = {}
    if "title" in seo:
        checks["meta_title"] = validate_meta_title(seo.get("title") or "", keyword)
    if "description" in seo:
        checks["meta_description"] = validate_meta_description(seo.get("description") or "", keyword)
    if "headings" in seo:
        checks["headings"] = validate_headings(seo.get("headings") or [])
    pagespeed = seo.get("pagespeed") or {}
    if pagespeed.get("mobile_score") is not None and pagespeed.get("desktop_score") is not None:
        checks["pagespeed"] = validate_page_speed(pagespeed["mobile_score"], pagespeed["desktop_score"])
    images = seo.get("images") or {}
    if images.get("total_images") is not None:
        checks["alt_text"] = validate_alt_text(
            images["total_images"], images.get("missing_alt") or 0, images.get("keyword_matches") or 0
        )
    return {name: result.model_dump(mode="json") for name, result in checks.items()}


async def _owned_scan(scan_id: str, user_id: str) -> dict:
    scan = await store.find_one("scans", {"id": scan_id})
    if not scan:
        raise HTTPException(status_code=404, detail="Scan not found")
    if scan.get("user_id") != user_id:
        raise HTTPException(status_code=403, detail="Not your scan")
    return scan


@router.post("/", status_code=201)
async def record_scan(
    body: ScanCreateRequest,
    current_user: dict = Depends(require_permission("scan")),
):
    """Store a scan produced by the analysis backend, consuming one monthly scan."""
    user_id = current_user["sub"]
    url = normalize_url(body.url)

    check = await plans.check_plan_limit(user_id)
    if not check["allowed"]:
        raise HTTPException(status_code=402, detail=check["error"])
    seo = body.seo.model_dump(mode="json", exclude_unset=True)
    ai = body.ai_analysis.model_dump(mode="json", exclude_unset=True) if body.ai_analysis else None
    if ai:
        ai_check = await plans.check_plan_limit(user_id, "ai")
        if not ai_check["allowed"]:
            raise HTTPException(status_code=402, detail=ai_check["error"])

    analysis = {"url": url, "seo": seo, "ai_analysis": ai or {}}
    standardized = convert_to_standardized(analysis, url)
    scan = await store.insert("scans", {
        "user_id": user_id,
        "url": url,
        "seo": seo,
        "ai_analysis": ai,
        "overall_score": standardized.overall_score,
        "validation": validate_seo_payload(seo),
    })
    await plans.record_usage(user_id, "scans")
    if ai:
        await plans.record_ai_usage(user_id, "scan_analysis")
    await log_validation(url, True, [])
    logger.info("Recorded scan %s for %s (score %s)", scan["id"], url, scan["overall_score"])
    return {"success": True, "scan": scan, "remaining": check["plan"]["remaining_count"] - 1}


@router.get("/")
async def list_scans(
    limit: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    url: str = Query(None, description="Only scans of this URL"),
    current_user: dict = Depends(require_permission("history")),
):
    """Scan history for the current user, newest first."""
    query = {"user_id": current_user["sub"]}
    if url:
        query["url"] = normalize_url(url)
    results = await store.find("scans", query, sort="created_at")
    return {"success": True, "total": len(results), "scans": results[skip: skip + limit]}


@router.get("/compare")
async def compare_latest(
    url: str = Query(..., description="URL whose last two scans are compared"),
    current_user: dict = Depends(require_permission("results")),
):
    latest_two = await store.find(
        "scans", {"user_id": current_user["sub"], "url": normalize_url(url)}, sort="created_at", limit=2
    )
    if not latest_two:
        raise HTTPException(status_code=404, detail="No scans for this URL")
    previous = latest_two[1] if len(latest_two) > 1 else None
    return compare_scans(latest_two[0], previous)


@router.get("/{scan_id}")
async def get_scan(scan_id: str, current_user: dict = Depends(require_permission("results"))):
    return await _owned_scan(scan_id, current_user["sub"])


@router.get("/{scan_id}/validation")
async def scan_validation(scan_id: str, current_user: dict = Depends(require_permission("results"))):
    """Standardised, validated view of a stored scan."""
    scan = await _owned_scan(scan_id, current_user["sub"])
    standardized = convert_to_standardized(scan, scan["url"])
    return {
        "standardized": standardized.model_dump(mode="json", by_alias=True),
        "checks": validate_seo_payload(scan.get("seo") or {}),
        "issues": issues_by_priority((scan.get("seo") or {}).get("issues") or []),
    }


@router.delete("/{scan_id}")
async def delete_scan(scan_id: str, current_user: dict = Depends(require_session)):
    await _owned_scan(scan_id, current_user["sub"])
    await store.delete("scans", {"id": scan_id})
    return {"success": True, "message": f"Scan {scan_id} deleted"}
