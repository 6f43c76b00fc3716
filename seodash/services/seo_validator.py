"""
seodash/services/seo_validator.py
Threshold checks on SEO metadata, producing the 0–100 validation score used
to badge dashboard elements. Messages are shown to users as-is (Vietnamese).
"""
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlparse

from seodash.models import (
    AISEO,
    AIRewriteResult,
    Heading,
    MetaDescriptionResult,
    MetaTitleResult,
    RegularSEO,
    StandardizedSEOAnalysis,
    ValidationResult,
    ValidationStatus,
)
from seodash.utils import store

logger = logging.getLogger(__name__)

CTA_PATTERN = re.compile(r"\b(mua|đặt|tải|xem|liên hệ|đăng ký|tìm hiểu)\b", re.IGNORECASE)

TITLE_MIN, TITLE_MAX = 30, 60
DESCRIPTION_MIN, DESCRIPTION_MAX = 120, 160

HeadingLike = Union[Heading, Dict[str, Any]]


def _status_for(score: float) -> ValidationStatus:
    if score >= 80:
        return ValidationStatus.VALID
    if score >= 60:
        return ValidationStatus.WARNING
    return ValidationStatus.ERROR


def _result(status: ValidationStatus, message: str, score: float) -> ValidationResult:
    return ValidationResult(status=status, message=message, score=round(score))


def has_cta(text: str) -> bool:
    return bool(CTA_PATTERN.search(text or ""))


def _contains(text: str, keyword: Optional[str]) -> bool:
    return bool(keyword) and keyword.lower() in text.lower()


# ── Single-field validators ────────────────────────────────────────────────────

def validate_meta_title(title: str, keyword: Optional[str] = None) -> ValidationResult:
    length = len(title or "")
    if length == 0:
        return _result(ValidationStatus.ERROR, "Meta title trống", 0)
    if length < TITLE_MIN:
        return _result(ValidationStatus.WARNING, f"{length} ký tự - Quá ngắn", 50)
    if length > TITLE_MAX:
        return _result(ValidationStatus.WARNING, f"{length} ký tự - Quá dài", 70)
    if keyword and not _contains(title, keyword):
        return _result(ValidationStatus.WARNING, f"{length} ký tự - Thiếu từ khóa chính", 75)
    return _result(ValidationStatus.VALID, f"{length} ký tự - Tối ưu tốt", 95)


def validate_meta_description(description: str, keyword: Optional[str] = None) -> ValidationResult:
    length = len(description or "")
    if length == 0:
        return _result(ValidationStatus.ERROR, "Meta description trống", 0)
    if length < DESCRIPTION_MIN:
        return _result(ValidationStatus.WARNING, f"{length} ký tự - Quá ngắn", 60)
    if length > DESCRIPTION_MAX:
        return _result(ValidationStatus.WARNING, f"{length} ký tự - Quá dài", 70)

    score = 80
    issues = []
    if not has_cta(description):
        score -= 10
        issues.append("thiếu CTA")
    if keyword and not _contains(description, keyword):
        score -= 15
        issues.append("thiếu từ khóa")

    message = f"{length} ký tự - " + (", ".join(issues) if issues else "Tối ưu tốt")
    status = ValidationStatus.VALID if score >= 80 else ValidationStatus.WARNING
    return _result(status, message, score)


def _as_pairs(headings: List[HeadingLike]) -> List[tuple]:
    pairs = []
    for h in headings:
        if isinstance(h, Heading):
            pairs.append((h.level, h.text))
        else:
            pairs.append((int(h.get("level", 0)), str(h.get("text", ""))))
    return pairs


def find_duplicate_headings(headings: List[HeadingLike]) -> List[str]:
    seen, duplicates = set(), []
    for _, text in _as_pairs(headings):
        if text in seen and text not in duplicates:
            duplicates.append(text)
        seen.add(text)
    return duplicates


def has_logical_heading_structure(headings: List[HeadingLike]) -> bool:
    """False when a heading skips a level, e.g. H1 followed directly by H3."""
    levels = [level for level, _ in _as_pairs(headings)]
    return all(curr <= prev + 1 for prev, curr in zip(levels, levels[1:]))


def validate_headings(headings: List[HeadingLike]) -> ValidationResult:
    if not headings:
        return _result(ValidationStatus.ERROR, "Không có heading nào", 0)

    h1_count = sum(1 for level, _ in _as_pairs(headings) if level == 1)
    duplicates = find_duplicate_headings(headings)

    score = 70
    issues = []
    if h1_count == 0:
        score -= 30
        issues.append("thiếu H1")
    elif h1_count > 1:
        score -= 20
        issues.append(f"{h1_count} H1 tags")
    if duplicates:
        score -= 15
        issues.append(f"{len(duplicates)} heading trùng")
    if not has_logical_heading_structure(headings):
        score -= 10
        issues.append("cấu trúc không logic")

    message = f"{len(headings)} headings - " + (", ".join(issues) if issues else "Cấu trúc tốt")
    return _result(_status_for(score), message, score)


def validate_page_speed(mobile_score: float, desktop_score: float) -> ValidationResult:
    avg = (mobile_score + desktop_score) / 2
    prefix = f"Mobile: {mobile_score:g}/100 - Desktop: {desktop_score:g}/100"
    if avg >= 90:
        return _result(ValidationStatus.VALID, f"{prefix} - Xuất sắc", 100)
    if avg >= 70:
        return _result(ValidationStatus.WARNING, f"{prefix} - Cần cải thiện", 75)
    return _result(ValidationStatus.ERROR, f"{prefix} - Cần tối ưu gấp", 40)


def validate_alt_text(total_images: int, missing_alt: int, keyword_matches: int) -> ValidationResult:
    if total_images == 0:
        return _result(ValidationStatus.VALID, "Không có hình ảnh", 100)

    coverage = (total_images - missing_alt) / total_images * 100
    keyword_coverage = keyword_matches / total_images * 100

    score = coverage
    issues = []
    if missing_alt > 0:
        issues.append(f"{missing_alt} ảnh thiếu alt")
    if keyword_coverage < 30:
        score -= 20
        issues.append("ít từ khóa trong alt")

    message = f"{total_images} ảnh - " + (", ".join(issues) if issues else "Alt text tối ưu")
    return _result(_status_for(score), message, score)


# ── Whole-analysis helpers ─────────────────────────────────────────────────────

def calculate_overall_score(analysis: Dict[str, Any]) -> int:
    """Mean of the title, description and AI scores that are present."""
    seo = analysis.get("seo") or {}
    ai = analysis.get("ai_analysis") or {}
    scores = []
    if seo.get("title"):
        scores.append(validate_meta_title(seo["title"]).score or 0)
    if seo.get("description"):
        scores.append(validate_meta_description(seo["description"]).score or 0)
    if ai.get("score"):
        scores.append(ai["score"])
    return round(sum(scores) / len(scores)) if scores else 0


def _extract_regular_seo(analysis: Dict[str, Any], stamp: str) -> RegularSEO:
    seo = analysis.get("seo") or {}
    regular = RegularSEO()
    title = seo.get("title")
    if title:
        regular.meta_title = MetaTitleResult(
            status=ValidationStatus.VALID,
            value={
                "title": title,
                "length": len(title),
                "keyword_present": True,
                "suggested_title": seo.get("suggested_title"),
            },
            validation=validate_meta_title(title),
            timestamp=stamp,
        )
    description = seo.get("description")
    if description:
        regular.meta_description = MetaDescriptionResult(
            status=ValidationStatus.VALID,
            value={
                "description": description,
                "length": len(description),
                "unique": True,
                "has_cta": has_cta(description),
                "suggested_description": seo.get("suggested_description"),
            },
            validation=validate_meta_description(description),
            timestamp=stamp,
        )
    return regular


def _extract_ai_seo(analysis: Dict[str, Any], stamp: str) -> AISEO:
    ai = analysis.get("ai_analysis") or {}
    rewrite = ai.get("rewrite")
    if not rewrite:
        return AISEO()
    return AISEO(ai_rewrite=AIRewriteResult(
        status=ValidationStatus.VALID,
        value={
            "original": rewrite.get("original") or "",
            "rewritten": rewrite.get("improved") or "",
            "improvements": {
                "keyword_density": rewrite.get("keyword_density") or 0,
                "readability_score": rewrite.get("readability") or 0,
                "cta_added": bool(rewrite.get("cta_added")),
                "grammar_fixes": rewrite.get("grammar_fixes") or 0,
            },
            "confidence": rewrite.get("confidence") or 0,
        },
        validation=ValidationResult(status=ValidationStatus.VALID, message="AI rewrite completed", score=95),
        timestamp=stamp,
    ))


def convert_to_standardized(analysis: Dict[str, Any], url: Optional[str]) -> StandardizedSEOAnalysis:
    stamp = datetime.now(timezone.utc).isoformat()
    return StandardizedSEOAnalysis(
        url=url or analysis.get("url") or "",
        scan_id=analysis.get("id") or str(uuid.uuid4()),
        timestamp=stamp,
        user_id=analysis.get("user_id") or "",
        processing_time_ms=analysis.get("processing_time") or 0,
        regular_seo=_extract_regular_seo(analysis, stamp),
        ai_seo=_extract_ai_seo(analysis, stamp),
        overall_score=calculate_overall_score(analysis),
    )


async def log_validation(url: Optional[str], is_valid: bool, errors: List[str]) -> None:
    """Record a validation run in api_logs. Failures are logged, never raised."""
    try:
        await store.insert("api_logs", {
            "api_name": "seo_validation",
            "domain": urlparse(url).hostname if url else None,
            "method": "POST",
            "endpoint": "/validate-seo",
            "status_code": 200 if is_valid else 400,
            "success": is_valid,
            "error_message": "; ".join(errors) if errors else None,
            "request_payload": {"url": url, "validation_type": "schema_check"},
            "response_data": {"valid": is_valid, "error_count": len(errors)},
        })
    except Exception as e:
        logger.error("Failed to log validation for %s: %s", url, e)


async def validate_analysis(analysis: Dict[str, Any], url: Optional[str]) -> Dict[str, Any]:
    errors: List[str] = []
    target = url or analysis.get("url")
    if not target:
        errors.append("Missing URL")

    try:
        standardized = convert_to_standardized(analysis, target)
    except Exception as e:
        logger.warning("Could not standardise analysis for %s: %s", target, e)
        errors.append(f"Validation error: {e}")
        standardized = None

    is_valid = not errors
    await log_validation(target, is_valid, errors)
    return {
        "is_valid": is_valid,
        "errors": errors,
        "standardized": standardized if is_valid else None,
    }
