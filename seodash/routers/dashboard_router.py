"""
seodash/routers/dashboard_router.py
Aggregated stats, website cards and the plan usage widget for the dashboard page.
"""
from collections import Counter

from fastapi import APIRouter, Depends

from seodash.services import plans
from seodash.services.site_metrics import (
    calculate_portfolio_score,
    daily_timeline,
    project_to_website,
    score_band,
    top_urls,
)
from seodash.utils import store
from seodash.utils.auth import require_session

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


def _url_score(scan):
    return {"url": scan.get("url"), "score": scan.get("overall_score")} if scan else None


@router.get("/stats")
async def dashboard_stats(current_user: dict = Depends(require_session)):
    """
    Returns aggregated stats for the authenticated user's dashboard:
    - total scans and average overall score
    - best / worst scoring URL
    - score distribution (excellent/good/fair/poor)
    - top scanned URLs (by frequency)
    - recent 5 scans
    - scans over time (last 30 days, grouped by day)
    """
    scans = await store.find("scans", {"user_id": current_user["sub"]}, sort="created_at")
    scored = [s for s in scans if s.get("overall_score") is not None]
    scores = [s["overall_score"] for s in scored]

    return {
        "total": len(scans),
        "avg_score": round(sum(scores) / len(scores)) if scores else None,
        "best": _url_score(max(scored, key=lambda s: s["overall_score"], default=None)),
        "worst": _url_score(min(scored, key=lambda s: s["overall_score"], default=None)),
        "score_distribution": dict(Counter(score_band(score) for score in scores)),
        "top_urls": top_urls(scans),
        "recent_scans": [
            {
                "scan_id": s.get("id"),
                "url": s.get("url"),
                "overall_score": s.get("overall_score"),
                "created_at": s.get("created_at"),
            }
            for s in scans[:5]
        ],
        "timeline": daily_timeline(scans),
    }


@router.get("/websites")
async def websites(current_user: dict = Depends(require_session)):
    """One card per scanned website, built from its most recent scan."""
    scans = await store.find("scans", {"user_id": current_user["sub"]}, sort="created_at")
    latest = {}
    for scan in scans:
        latest.setdefault(scan["url"], scan)

    cards = [
        project_to_website({
            "id": scan["id"],
            "website_url": url,
            "status": "completed",
            "seo_score": scan.get("overall_score"),
            "created_at": scan.get("created_at"),
            "updated_at": scan.get("updated_at"),
        })
        for url, scan in latest.items()
    ]
    return {"websites": cards, "overall_score": calculate_portfolio_score(cards)}


@router.get("/usage")
async def usage(current_user: dict = Depends(require_session)):
    """Plan usage widget: month-to-date counts against plan limits."""
    return await plans.get_usage(current_user["sub"])
