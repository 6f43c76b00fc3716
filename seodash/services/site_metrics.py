"""
seodash/services/site_metrics.py
Small aggregations shared by the dashboard, history and report views.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

WEBSITE_STATUSES = ("pending", "analyzing", "completed", "error")


def score_band(score: Optional[float]) -> str:
    if score is None:
        return "unknown"
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "poor"


def calculate_portfolio_score(websites: List[Dict[str, Any]]) -> int:
    """Rounded mean SEO score across a user's websites."""
    if not websites:
        return 0
    return round(sum(w.get("seo_score") or 0 for w in websites) / len(websites))


def issues_by_priority(issues: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    grouped = {"high": [], "medium": [], "low": []}
    for issue in issues:
        severity = issue.get("severity")
        if severity in grouped:
            grouped[severity].append(issue)
    return grouped


def project_to_website(project: Dict[str, Any]) -> Dict[str, Any]:
    url = project["website_url"]
    now = datetime.now(timezone.utc).isoformat()
    status = project.get("status")
    return {
        "id": project["id"],
        "url": url,
        "name": urlparse(url).hostname or url,
        "description": f"SEO analysis for {url}",
        "category": "Website",
        "last_scan_date": project.get("created_at") or now,
        "last_analyzed": project.get("updated_at") or project.get("created_at") or now,
        "seo_score": project.get("seo_score") or 0,
        "page_speed_score": 0,
        "mobile_friendliness_score": 0,
        "security_score": 0,
        "technologies": [],
        "status": status if status in WEBSITE_STATUSES else "pending",
    }


def _check_scores(scan: Dict[str, Any]) -> Dict[str, Optional[int]]:
    checks = scan.get("validation") or {}
    return {name: (c or {}).get("score") for name, c in checks.items()}


def compare_scans(latest: Dict[str, Any], previous: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Score delta between the two most recent scans of one URL."""
    latest_score = latest.get("overall_score")
    if previous is None:
        return {"has_comparison": False, "latest": latest, "previous": None,
                "score_delta": None, "checks": {}}

    prev_score = previous.get("overall_score")
    delta = None
    if latest_score is not None and prev_score is not None:
        delta = latest_score - prev_score

    now_checks, old_checks = _check_scores(latest), _check_scores(previous)
    checks = {}
    for name in sorted(set(now_checks) | set(old_checks)):
        before, after = old_checks.get(name), now_checks.get(name)
        checks[name] = {
            "before": before,
            "after": after,
            "delta": after - before if before is not None and after is not None else None,
        }

    if delta is None:
        trend = "unknown"
    elif delta > 0:
        trend = "improved"
    elif delta < 0:
        trend = "declined"
    else:
        trend = "unchanged"

    return {
        "has_comparison": True,
        "latest": latest,
        "previous": previous,
        "score_delta": delta,
        "trend": trend,
        "checks": checks,
    }


def _parse_ts(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def daily_timeline(scans: List[Dict[str, Any]], days: int = 30,
                   now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Scan count and mean score per UTC day, oldest first, with empty days included."""
    now = now or datetime.now(timezone.utc)
    buckets: Dict[str, List[Optional[int]]] = {
        (now - timedelta(days=offset)).strftime("%Y-%m-%d"): []
        for offset in range(days - 1, -1, -1)
    }
    for scan in scans:
        ts = _parse_ts(scan.get("created_at"))
        if ts is None:
            continue
        day = ts.strftime("%Y-%m-%d")
        if day in buckets:
            buckets[day].append(scan.get("overall_score"))

    timeline = []
    for day, scores in buckets.items():
        present = [s for s in scores if s is not None]
        timeline.append({
            "date": day,
            "scans": len(scores),
            "avg_score": round(sum(present) / len(present)) if present else None,
        })
    return timeline


def top_urls(scans: List[Dict[str, Any]], limit: int = 5) -> List[Dict[str, Any]]:
    """Most-scanned URLs with their latest score; `scans` must be newest first."""
    counts: Dict[str, int] = {}
    latest: Dict[str, Optional[int]] = {}
    for scan in scans:
        url = scan.get("url")
        if not url:
            continue
        counts[url] = counts.get(url, 0) + 1
        if latest.get(url) is None:
            latest[url] = scan.get("overall_score")
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [{"url": url, "count": n, "latest_score": latest.get(url)} for url, n in ranked]
